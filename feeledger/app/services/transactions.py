"""Manual income/expense entries."""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from feeledger.app.core.errors import NotFoundError, ValidationError
from feeledger.app.models.finance_service import FinanceService
from feeledger.app.models.finance_transaction import TRANSACTION_TYPES, FinanceTransaction
from feeledger.app.services.categories import get_category
from feeledger.app.services.ledger import lock_account, post_transaction, reverse_transaction, run_unit_of_work

logger = logging.getLogger(__name__)


def create_transaction(
    db: Session,
    *,
    organization_id: int,
    user_id: int,
    account_id: int,
    category_id: int,
    transaction_type: str,
    amount: Decimal | float | int | str,
    description: str,
    transaction_date: date,
    vat_rate: Decimal | float | int | str = 0,
    service_id: Optional[int] = None,
    reference_no: Optional[str] = None,
) -> FinanceTransaction:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("Transaction type must be income or expense.")
    if not (description or "").strip():
        raise ValidationError("Description is required.")

    def _create() -> FinanceTransaction:
        category = get_category(db, organization_id=organization_id, category_id=category_id)
        if category.type != transaction_type:
            raise ValidationError("Category type does not match the transaction type.")
        if service_id is not None:
            exists = (
                db.query(FinanceService.id)
                .filter(FinanceService.id == service_id, FinanceService.organization_id == organization_id)
                .first()
            )
            if exists is None:
                raise NotFoundError("Service")
        account = lock_account(db, organization_id=organization_id, account_id=account_id)
        transaction = post_transaction(
            db,
            organization_id=organization_id,
            user_id=user_id,
            account=account,
            category_id=category.id,
            transaction_type=transaction_type,
            amount=amount,
            transaction_date=transaction_date,
            description=description.strip(),
            vat_rate=vat_rate,
            service_id=service_id,
            reference_no=reference_no or None,
        )
        db.flush()
        return transaction

    transaction = run_unit_of_work(db, _create, action="create_transaction")
    logger.info(
        "Posted %s transaction %s of %s to account %s (org=%s user=%s)",
        transaction_type,
        transaction.id,
        transaction.amount,
        account_id,
        organization_id,
        user_id,
    )
    return transaction


def list_transactions(
    db: Session,
    *,
    organization_id: int,
    transaction_type: Optional[str] = None,
    category_id: Optional[int] = None,
    account_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[FinanceTransaction], int]:
    query = db.query(FinanceTransaction).filter(
        FinanceTransaction.organization_id == organization_id,
        FinanceTransaction.deleted_at.is_(None),
    )
    if transaction_type:
        query = query.filter(FinanceTransaction.type == transaction_type)
    if category_id is not None:
        query = query.filter(FinanceTransaction.category_id == category_id)
    if account_id is not None:
        query = query.filter(FinanceTransaction.account_id == account_id)
    if start_date is not None:
        query = query.filter(FinanceTransaction.transaction_date >= start_date)
    if end_date is not None:
        query = query.filter(FinanceTransaction.transaction_date <= end_date)
    total = query.count()
    rows = (
        query.order_by(FinanceTransaction.transaction_date.desc(), FinanceTransaction.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def delete_transaction(db: Session, *, organization_id: int, user_id: int, transaction_id: int) -> FinanceTransaction:
    """Soft-delete a manual entry and take its amount back out of the account."""

    def _delete() -> FinanceTransaction:
        transaction = (
            db.query(FinanceTransaction)
            .filter(FinanceTransaction.id == transaction_id, FinanceTransaction.organization_id == organization_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if transaction is None:
            raise NotFoundError("Transaction")
        if transaction.related_payment_id is not None or transaction.related_fee_id is not None:
            raise ValidationError("Fee-related transactions cannot be deleted; cancel the fee instead.")
        account = lock_account(db, organization_id=organization_id, account_id=transaction.account_id)
        reverse_transaction(db, transaction=transaction, account=account)
        db.flush()
        return transaction

    transaction = run_unit_of_work(db, _delete, action="delete_transaction")
    logger.info("Deleted transaction %s (org=%s user=%s)", transaction_id, organization_id, user_id)
    return transaction
