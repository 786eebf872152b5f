from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FinancialSummary(BaseModel):
    """Yearly totals for the accounting dashboard."""

    year: int
    total_income: Decimal
    total_income_vat: Decimal
    total_expense: Decimal
    total_expense_vat: Decimal
    net_profit: Decimal
    net_vat: Decimal
    total_vat: Decimal
    collected_amount: Decimal
    pending_amount: Decimal
    overdue_amount: Decimal
    collection_rate: int


class MonthlyTrend(BaseModel):
    month: str
    income: Decimal
    expense: Decimal


class CategoryDistribution(BaseModel):
    category_name: str
    category_icon: Optional[str] = None
    amount: Decimal
    percentage: int


class OverdueInstallment(BaseModel):
    installment_id: int
    fee_id: int
    student_id: int
    student_name: str
    amount: Decimal
    due_date: date
    days_overdue: int

    model_config = ConfigDict(from_attributes=True)
