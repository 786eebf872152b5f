"""Per-organization finance settings endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user, get_finance_user
from feeledger.app.models.user import User
from feeledger.app.schemas.finance_settings import FinanceSettingsRead, FinanceSettingsUpdate
from feeledger.app.services import finance_settings
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/finance/settings", tags=["finance"])


@router.get("/", response_model=FinanceSettingsRead)
def read_settings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(run_action(db, current_user, "get_finance_settings", finance_settings.get_finance_settings))


@router.put("/", response_model=FinanceSettingsRead)
def update_settings(
    settings_in: FinanceSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_finance_user),
):
    result = run_action(
        db,
        current_user,
        "update_finance_settings",
        finance_settings.update_finance_settings,
        currency=settings_in.currency,
        default_installments=settings_in.default_installments,
        payment_due_day=settings_in.payment_due_day,
        academic_periods=settings_in.academic_periods,
    )
    return unwrap(result)
