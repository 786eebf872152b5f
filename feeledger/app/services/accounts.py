"""Cash, bank and POS account store.

Balances are never written here after creation; see services.ledger.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from feeledger.app.core.errors import NotFoundError, ReferencedEntityError, ValidationError
from feeledger.app.core.money import round2
from feeledger.app.models.fee_payment import FeePayment
from feeledger.app.models.finance_account import ACCOUNT_TYPES, FinanceAccount
from feeledger.app.models.finance_transaction import FinanceTransaction
from feeledger.app.services.finance_settings import get_finance_settings

logger = logging.getLogger(__name__)


def get_account(db: Session, *, organization_id: int, account_id: int) -> FinanceAccount:
    account = (
        db.query(FinanceAccount)
        .filter(FinanceAccount.id == account_id, FinanceAccount.organization_id == organization_id)
        .first()
    )
    if account is None:
        raise NotFoundError("Account")
    return account


def list_accounts(db: Session, *, organization_id: int) -> List[FinanceAccount]:
    return (
        db.query(FinanceAccount)
        .filter(FinanceAccount.organization_id == organization_id)
        .order_by(FinanceAccount.created_at.asc(), FinanceAccount.id.asc())
        .all()
    )


def create_account(
    db: Session,
    *,
    organization_id: int,
    name: str,
    account_type: str = "cash",
    balance: Decimal | float | int | str = 0,
    currency: Optional[str] = None,
) -> FinanceAccount:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Account name is required.")
    if account_type not in ACCOUNT_TYPES:
        raise ValidationError("Account type must be cash, bank or pos.")
    if currency is None:
        currency = get_finance_settings(db, organization_id=organization_id, commit=False).currency
    account = FinanceAccount(
        organization_id=organization_id,
        name=name,
        account_type=account_type,
        balance=round2(balance),
        currency=currency.upper(),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Created account %s '%s' (org=%s)", account.id, account.name, organization_id)
    return account


def update_account(
    db: Session,
    *,
    organization_id: int,
    account_id: int,
    name: Optional[str] = None,
    account_type: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> FinanceAccount:
    account = get_account(db, organization_id=organization_id, account_id=account_id)
    if name is not None:
        if not name.strip():
            raise ValidationError("Account name is required.")
        account.name = name.strip()
    if account_type is not None:
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError("Account type must be cash, bank or pos.")
        account.account_type = account_type
    if is_active is not None:
        account.is_active = is_active
    db.commit()
    db.refresh(account)
    return account


def delete_account(db: Session, *, organization_id: int, account_id: int) -> None:
    """Hard-delete an account that never carried money; otherwise refuse."""
    account = get_account(db, organization_id=organization_id, account_id=account_id)
    tx_count = db.query(FinanceTransaction).filter(FinanceTransaction.account_id == account.id).count()
    payment_count = db.query(FeePayment).filter(FeePayment.account_id == account.id).count()
    if tx_count > 0 or payment_count > 0:
        raise ReferencedEntityError(
            "This account has transaction history and cannot be deleted. Deactivate it instead."
        )
    db.delete(account)
    db.commit()
    logger.info("Deleted account %s (org=%s)", account_id, organization_id)
