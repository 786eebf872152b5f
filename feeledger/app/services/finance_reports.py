"""Read-side financial reporting over transactions, installments and payments.

Income transactions that mirror a fee payment (related_payment_id set) are
left out of the transaction sums; the payment itself is counted instead.
"""

from collections import OrderedDict
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from feeledger.app.core.money import HUNDRED, ZERO, round2, to_decimal
from feeledger.app.core.settings import get_settings
from feeledger.app.core.time import utc_today
from feeledger.app.models.fee_installment import FeeInstallment
from feeledger.app.models.fee_payment import FeePayment
from feeledger.app.models.finance_category import FinanceCategory
from feeledger.app.models.finance_transaction import FinanceTransaction
from feeledger.app.models.student import Student
from feeledger.app.models.student_fee import StudentFee
from feeledger.app.schemas.reports import CategoryDistribution, FinancialSummary, MonthlyTrend, OverdueInstallment
from feeledger.app.services.ledger import derive_installment_status


def _year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def _percent(part: Decimal, whole: Decimal) -> int:
    if whole <= 0:
        return 0
    return int((part / whole * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _transactions(db: Session, organization_id: int, year: Optional[int], transaction_type: Optional[str] = None):
    query = db.query(FinanceTransaction).filter(
        FinanceTransaction.organization_id == organization_id,
        FinanceTransaction.deleted_at.is_(None),
    )
    if transaction_type:
        query = query.filter(FinanceTransaction.type == transaction_type)
    if year is not None:
        start, end = _year_bounds(year)
        query = query.filter(FinanceTransaction.transaction_date >= start, FinanceTransaction.transaction_date <= end)
    return query


def _fee_payments(db: Session, organization_id: int, year: Optional[int]) -> List[FeePayment]:
    query = db.query(FeePayment).filter(FeePayment.organization_id == organization_id)
    if year is not None:
        query = query.filter(
            FeePayment.payment_date >= datetime.combine(date(year, 1, 1), time.min),
            FeePayment.payment_date < datetime.combine(date(year + 1, 1, 1), time.min),
        )
    return query.all()


def financial_summary(
    db: Session,
    *,
    organization_id: int,
    year: Optional[int] = None,
    today: Optional[date] = None,
) -> FinancialSummary:
    as_of = today or utc_today()
    report_year = year or as_of.year

    manual_income = ZERO
    income_vat = ZERO
    total_expense = ZERO
    expense_vat = ZERO
    for tx in _transactions(db, organization_id, report_year).all():
        amount = to_decimal(tx.amount)
        vat = to_decimal(tx.vat_amount)
        if tx.type == "income":
            income_vat += vat
            if tx.related_payment_id is None:
                manual_income += amount
        else:
            total_expense += amount
            expense_vat += vat

    fee_income = sum((to_decimal(p.amount) for p in _fee_payments(db, organization_id, report_year)), ZERO)
    total_income = manual_income + fee_income

    collected = ZERO
    pending = ZERO
    overdue = ZERO
    installments = (
        db.query(FeeInstallment)
        .filter(
            FeeInstallment.organization_id == organization_id,
            FeeInstallment.status.in_(["paid", "pending", "overdue"]),
        )
        .all()
    )
    for inst in installments:
        if inst.status == "paid":
            collected += to_decimal(inst.paid_amount)
            continue
        outstanding = to_decimal(inst.amount) - to_decimal(inst.paid_amount)
        status = derive_installment_status(inst.amount, inst.paid_amount, inst.due_date, as_of, inst.status)
        if status == "overdue":
            overdue += outstanding
        elif status == "pending":
            pending += outstanding

    return FinancialSummary(
        year=report_year,
        total_income=round2(total_income),
        total_income_vat=round2(income_vat),
        total_expense=round2(total_expense),
        total_expense_vat=round2(expense_vat),
        net_profit=round2(total_income - total_expense),
        net_vat=round2(income_vat - expense_vat),
        total_vat=round2(income_vat + expense_vat),
        collected_amount=round2(collected),
        pending_amount=round2(pending),
        overdue_amount=round2(overdue),
        collection_rate=_percent(collected, collected + pending + overdue),
    )


def monthly_trends(db: Session, *, organization_id: int, year: Optional[int] = None) -> List[MonthlyTrend]:
    report_year = year or utc_today().year
    months: Dict[str, Dict[str, Decimal]] = OrderedDict(
        (f"{report_year}-{m:02d}", {"income": ZERO, "expense": ZERO}) for m in range(1, 13)
    )

    for tx in _transactions(db, organization_id, report_year).filter(FinanceTransaction.related_payment_id.is_(None)).all():
        key = f"{tx.transaction_date.year}-{tx.transaction_date.month:02d}"
        if key in months:
            months[key][tx.type] += to_decimal(tx.amount)

    for payment in _fee_payments(db, organization_id, report_year):
        key = f"{payment.payment_date.year}-{payment.payment_date.month:02d}"
        if key in months:
            months[key]["income"] += to_decimal(payment.amount)

    return [
        MonthlyTrend(month=key, income=round2(vals["income"]), expense=round2(vals["expense"]))
        for key, vals in months.items()
    ]


def category_distribution(
    db: Session,
    *,
    organization_id: int,
    transaction_type: str,
    year: Optional[int] = None,
) -> List[CategoryDistribution]:
    settings = get_settings()
    rows = (
        _transactions(db, organization_id, year, transaction_type)
        .filter(FinanceTransaction.related_payment_id.is_(None))
        .outerjoin(FinanceCategory, FinanceTransaction.category_id == FinanceCategory.id)
        .with_entities(FinanceTransaction.amount, FinanceCategory.name, FinanceCategory.icon)
        .all()
    )

    buckets: Dict[str, Dict] = OrderedDict()
    for amount, name, icon in rows:
        key = name or "Unknown"
        bucket = buckets.setdefault(key, {"icon": icon, "amount": ZERO})
        bucket["amount"] += to_decimal(amount)

    if transaction_type == "income":
        fee_income = sum((to_decimal(p.amount) for p in _fee_payments(db, organization_id, year)), ZERO)
        if fee_income > 0:
            bucket = buckets.setdefault(
                settings.tuition_bucket_name, {"icon": settings.tuition_bucket_icon, "amount": ZERO}
            )
            bucket["amount"] += fee_income

    grand_total = sum((b["amount"] for b in buckets.values()), ZERO)
    if grand_total <= 0:
        return []

    distribution = [
        CategoryDistribution(
            category_name=name,
            category_icon=bucket["icon"],
            amount=round2(bucket["amount"]),
            percentage=_percent(bucket["amount"], grand_total),
        )
        for name, bucket in buckets.items()
    ]
    distribution.sort(key=lambda row: row.amount, reverse=True)
    return distribution


def overdue_installments(
    db: Session,
    *,
    organization_id: int,
    today: Optional[date] = None,
) -> List[OverdueInstallment]:
    as_of = today or utc_today()
    rows = (
        db.query(FeeInstallment, StudentFee.student_id, Student.full_name)
        .join(StudentFee, FeeInstallment.fee_id == StudentFee.id)
        .outerjoin(Student, StudentFee.student_id == Student.id)
        .filter(
            FeeInstallment.organization_id == organization_id,
            FeeInstallment.status.in_(["pending", "overdue"]),
            FeeInstallment.due_date < as_of,
        )
        .order_by(FeeInstallment.due_date.asc(), FeeInstallment.id.asc())
        .all()
    )
    return [
        OverdueInstallment(
            installment_id=inst.id,
            fee_id=inst.fee_id,
            student_id=student_id,
            student_name=student_name or "Unknown",
            amount=round2(to_decimal(inst.amount) - to_decimal(inst.paid_amount)),
            due_date=inst.due_date,
            days_overdue=(as_of - inst.due_date).days,
        )
        for inst, student_id, student_name in rows
    ]
