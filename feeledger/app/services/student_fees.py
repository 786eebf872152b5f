"""Student fee issuing and lookup."""

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from feeledger.app.core.errors import NotFoundError, ValidationError
from feeledger.app.core.money import CENT, HUNDRED, ZERO, apply_discount, round2, split_installments, split_vat, to_decimal
from feeledger.app.core.time import utc_today
from feeledger.app.models.fee_installment import FeeInstallment
from feeledger.app.models.finance_service import FinanceService
from feeledger.app.models.student import Student
from feeledger.app.models.student_fee import DISCOUNT_TYPES, FEE_STATUSES, StudentFee
from feeledger.app.services.finance_settings import get_finance_settings

logger = logging.getLogger(__name__)


def installment_due_dates(start: date, count: int, due_day: int) -> List[date]:
    """Due dates on `due_day` of consecutive months from `start`'s month, clamped to month end."""
    dates = []
    for offset in range(count):
        month_index = start.month - 1 + offset
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        last_day = calendar.monthrange(year, month)[1]
        dates.append(date(year, month, min(due_day, last_day)))
    return dates


def _validate_fee_terms(total: Decimal, discount: Decimal, discount_type: Optional[str], installment_count: int) -> None:
    if total < 0:
        raise ValidationError("Total amount cannot be negative.")
    if discount < 0:
        raise ValidationError("Discount cannot be negative.")
    if discount_type is not None and discount_type not in DISCOUNT_TYPES:
        raise ValidationError("Discount type must be percentage or fixed.")
    if discount_type == "percentage" and discount > HUNDRED:
        raise ValidationError("Percentage discount cannot exceed 100.")
    if discount_type != "percentage" and discount > total:
        raise ValidationError("Discount cannot exceed the total amount.")
    if installment_count < 1:
        raise ValidationError("Installment count must be at least 1.")


def _get_service(db: Session, organization_id: int, service_id: int) -> FinanceService:
    service = (
        db.query(FinanceService)
        .filter(FinanceService.id == service_id, FinanceService.organization_id == organization_id)
        .first()
    )
    if service is None:
        raise NotFoundError("Service")
    return service


def build_student_fee(
    db: Session,
    *,
    organization_id: int,
    student_id: int,
    total_amount: Decimal | float | int | str,
    installment_count: int,
    academic_period: str,
    discount_amount: Decimal | float | int | str = 0,
    discount_type: Optional[str] = None,
    discount_reason: Optional[str] = None,
    service_id: Optional[int] = None,
    vat_rate: Decimal | float | int | str | None = None,
    payment_due_day: Optional[int] = None,
    start_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> StudentFee:
    """Validate terms and add a fee with its installment plan to the session."""
    total = round2(total_amount)
    discount = to_decimal(discount_amount)
    _validate_fee_terms(total, discount, discount_type, installment_count)
    if not (academic_period or "").strip():
        raise ValidationError("Academic period is required.")

    student = (
        db.query(Student)
        .filter(Student.id == student_id, Student.organization_id == organization_id)
        .first()
    )
    if student is None:
        raise NotFoundError("Student")

    service = _get_service(db, organization_id, service_id) if service_id is not None else None
    if vat_rate is not None:
        rate = to_decimal(vat_rate)
    elif service is not None:
        rate = to_decimal(service.vat_rate)
    else:
        rate = ZERO
    if rate < 0 or rate > 100:
        raise ValidationError("VAT rate must be between 0 and 100.")

    net = apply_discount(total, discount, discount_type)
    if net <= 0:
        raise ValidationError("Net amount must be greater than zero.")
    if net < CENT * installment_count:
        raise ValidationError("Each installment must be at least 0.01; use fewer installments.")

    settings = get_finance_settings(db, organization_id=organization_id, commit=False)
    due_day = payment_due_day or settings.payment_due_day
    if not 1 <= due_day <= 31:
        raise ValidationError("Payment due day must be between 1 and 31.")

    fee = StudentFee(
        organization_id=organization_id,
        student_id=student.id,
        service_id=service.id if service is not None else None,
        total_amount=total,
        discount_amount=round2(discount),
        discount_type=discount_type if discount > 0 else None,
        discount_reason=discount_reason or None,
        vat_rate=rate,
        vat_amount=split_vat(net, rate).vat_amount,
        net_amount=net,
        installment_count=installment_count,
        academic_period=academic_period.strip(),
        status="active",
        notes=notes or None,
    )
    amounts = split_installments(net, installment_count)
    due_dates = installment_due_dates(start_date or utc_today(), installment_count, due_day)
    for number, (amount, due) in enumerate(zip(amounts, due_dates), start=1):
        fee.installments.append(
            FeeInstallment(
                organization_id=organization_id,
                installment_number=number,
                amount=amount,
                paid_amount=ZERO,
                due_date=due,
                status="pending",
            )
        )
    db.add(fee)
    return fee


def create_student_fee(db: Session, *, organization_id: int, **terms) -> StudentFee:
    try:
        fee = build_student_fee(db, organization_id=organization_id, **terms)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(fee)
    logger.info(
        "Created fee %s for student %s: net %s in %s installments (org=%s)",
        fee.id,
        fee.student_id,
        fee.net_amount,
        fee.installment_count,
        organization_id,
    )
    return fee


def bulk_assign_student_fees(db: Session, *, organization_id: int, student_ids: Iterable[int], **terms) -> int:
    """Issue the same fee to each student; each fee commits on its own."""
    assigned = 0
    for student_id in dict.fromkeys(student_ids):
        try:
            create_student_fee(db, organization_id=organization_id, student_id=student_id, **terms)
        except (NotFoundError, ValidationError) as exc:
            logger.warning("Skipped fee for student %s (org=%s): %s", student_id, organization_id, exc)
            continue
        assigned += 1
    return assigned


def list_student_fees(
    db: Session,
    *,
    organization_id: int,
    student_id: Optional[int] = None,
    academic_period: Optional[str] = None,
    status: Optional[str] = None,
) -> List[StudentFee]:
    if status is not None and status not in FEE_STATUSES:
        raise ValidationError(f"Unknown fee status '{status}'.")
    query = db.query(StudentFee).filter(StudentFee.organization_id == organization_id)
    if student_id is not None:
        query = query.filter(StudentFee.student_id == student_id)
    if academic_period:
        query = query.filter(StudentFee.academic_period == academic_period)
    if status:
        query = query.filter(StudentFee.status == status)
    return query.order_by(StudentFee.created_at.desc(), StudentFee.id.desc()).all()


def get_student_fee_detail(db: Session, *, organization_id: int, fee_id: int) -> StudentFee:
    fee = (
        db.query(StudentFee)
        .options(selectinload(StudentFee.installments))
        .filter(StudentFee.id == fee_id, StudentFee.organization_id == organization_id)
        .first()
    )
    if fee is None:
        raise NotFoundError("Student fee")
    return fee
