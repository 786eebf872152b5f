"""Financial reporting endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feeledger.app.api.results import unwrap
from feeledger.app.db.session import get_db
from feeledger.app.dependencies.auth import get_current_user
from feeledger.app.models.user import User
from feeledger.app.schemas.category import CategoryType
from feeledger.app.schemas.reports import CategoryDistribution, FinancialSummary, MonthlyTrend, OverdueInstallment
from feeledger.app.services import finance_reports
from feeledger.app.services.actions import run_action

router = APIRouter(prefix="/finance/reports", tags=["finance-reports"])


@router.get("/summary", response_model=FinancialSummary)
def read_summary(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(run_action(db, current_user, "financial_summary", finance_reports.financial_summary, year=year))


@router.get("/monthly-trends", response_model=List[MonthlyTrend])
def read_monthly_trends(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return unwrap(run_action(db, current_user, "monthly_trends", finance_reports.monthly_trends, year=year))


@router.get("/category-distribution", response_model=List[CategoryDistribution])
def read_category_distribution(
    type: CategoryType = "income",
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = run_action(
        db,
        current_user,
        "category_distribution",
        finance_reports.category_distribution,
        transaction_type=type,
        year=year,
    )
    return unwrap(result)


@router.get("/overdue-installments", response_model=List[OverdueInstallment])
def read_overdue_installments(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return unwrap(run_action(db, current_user, "overdue_installments", finance_reports.overdue_installments))
