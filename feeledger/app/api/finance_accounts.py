"""Finance account endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.account import FinanceAccountCreate, FinanceAccountRead, FinanceAccountUpdate
from feeledger.app.services import accounts
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/finance/accounts", tags=["finance"])


@router.get("/", response_model=List[FinanceAccountRead])
def list_accounts(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(run_action(db, current_user, "list_accounts", accounts.list_accounts))


@router.post("/", response_model=FinanceAccountRead, status_code=status.HTTP_201_CREATED)
def create_account(
    account_in: FinanceAccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(db, current_user, "create_account", accounts.create_account, **account_in.model_dump())
    return unwrap(result)


@router.patch("/{account_id}", response_model=FinanceAccountRead)
def update_account(
    account_id: int,
    account_in: FinanceAccountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "update_account",
        accounts.update_account,
        account_id=account_id,
        **account_in.model_dump(exclude_unset=True),
    )
    return unwrap(result)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    unwrap(run_action(db, current_user, "delete_account", accounts.delete_account, account_id=account_id))
