"""Manual finance transaction endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.transaction import (
    FinanceTransactionCreate,
    FinanceTransactionPage,
    FinanceTransactionRead,
    TransactionType,
)
from feeledger.app.services import transactions
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/finance/transactions", tags=["finance"])


@router.get("/", response_model=FinanceTransactionPage)
def list_transactions(
    type: Optional[TransactionType] = None,
    category_id: Optional[int] = None,
    account_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(
        db,
        current_user,
        "list_transactions",
        transactions.list_transactions,
        transaction_type=type,
        category_id=category_id,
        account_id=account_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    rows, total = unwrap(result)
    return {"data": rows, "count": total}


@router.post("/", response_model=FinanceTransactionRead, status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction_in: FinanceTransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "create_transaction",
        transactions.create_transaction,
        user_id=current_user.id,
        account_id=transaction_in.account_id,
        category_id=transaction_in.category_id,
        transaction_type=transaction_in.type,
        amount=transaction_in.amount,
        description=transaction_in.description,
        transaction_date=transaction_in.transaction_date,
        vat_rate=transaction_in.vat_rate,
        service_id=transaction_in.service_id,
        reference_no=transaction_in.reference_no,
    )
    return unwrap(result)


@router.delete("/{transaction_id}", response_model=FinanceTransactionRead)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "delete_transaction",
        transactions.delete_transaction,
        user_id=current_user.id,
        transaction_id=transaction_id,
    )
    return unwrap(result)
