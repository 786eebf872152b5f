"""Read side of fee payment receipts."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from feeledger.app.core.errors import NotFoundError, ValidationError
from feeledger.app.core.money import ZERO, round2, to_decimal
from feeledger.app.core.settings import get_settings
from feeledger.app.models.fee_payment import PAYMENT_METHODS, FeePayment
from feeledger.app.models.organization import Organization
from feeledger.app.models.user import User


def list_fee_payments(
    db: Session,
    *,
    organization_id: int,
    student_id: Optional[int] = None,
    installment_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[FeePayment], int]:
    if payment_method is not None and payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method '{payment_method}'.")
    query = db.query(FeePayment).filter(FeePayment.organization_id == organization_id)
    if student_id is not None:
        query = query.filter(FeePayment.student_id == student_id)
    if installment_id is not None:
        query = query.filter(FeePayment.installment_id == installment_id)
    if payment_method:
        query = query.filter(FeePayment.payment_method == payment_method)
    if start_date is not None:
        query = query.filter(FeePayment.payment_date >= datetime.combine(start_date, time.min))
    if end_date is not None:
        query = query.filter(FeePayment.payment_date < datetime.combine(end_date + timedelta(days=1), time.min))
    total = query.count()
    rows = query.order_by(FeePayment.payment_date.desc(), FeePayment.id.desc()).offset(offset).limit(limit).all()
    return rows, total


@dataclass
class FeeReceipt:
    """Everything printed on a payment receipt, read back from the immutable payment row."""

    receipt_number: str
    payment: FeePayment
    organization_name: str
    student_name: str
    operator_name: str
    service_name: str
    academic_period: Optional[str]
    total_debt: Decimal
    total_paid: Decimal
    remaining_debt: Decimal


def _latest_installment_payment_id(db: Session, organization_id: int, installment_id: int) -> int:
    latest = (
        db.query(FeePayment.id)
        .filter(FeePayment.organization_id == organization_id, FeePayment.installment_id == installment_id)
        .order_by(FeePayment.payment_date.desc(), FeePayment.id.desc())
        .first()
    )
    if latest is None:
        raise NotFoundError("Payment")
    return latest.id


def _receipt_number(db: Session, payment: FeePayment) -> str:
    # sequence = position of the payment among the organization's payments by date
    sequence = (
        db.query(FeePayment)
        .filter(
            FeePayment.organization_id == payment.organization_id,
            or_(
                FeePayment.payment_date < payment.payment_date,
                and_(FeePayment.payment_date == payment.payment_date, FeePayment.id <= payment.id),
            ),
        )
        .count()
    )
    return f"RCP-{payment.payment_date.year}-{sequence:06d}"


def get_receipt_data(
    db: Session,
    *,
    organization_id: int,
    payment_id: Optional[int] = None,
    installment_id: Optional[int] = None,
) -> FeeReceipt:
    """Receipt for a payment, or for the latest payment made against an installment."""
    if payment_id is None and installment_id is None:
        raise ValidationError("A payment or an installment is required.")
    if payment_id is None:
        payment_id = _latest_installment_payment_id(db, organization_id, installment_id)

    payment = (
        db.query(FeePayment)
        .filter(FeePayment.id == payment_id, FeePayment.organization_id == organization_id)
        .first()
    )
    if payment is None:
        raise NotFoundError("Payment")

    organization = db.get(Organization, organization_id)
    operator = db.get(User, payment.created_by)
    amount = to_decimal(payment.amount)
    fee = payment.installment.fee if payment.installment is not None else None
    if fee is not None:
        total_debt = to_decimal(fee.net_amount)
        total_paid = round2(sum((to_decimal(inst.paid_amount) for inst in fee.installments), ZERO))
        remaining = max(ZERO, round2(total_debt - total_paid))
        service_name = fee.service.name if fee.service is not None else get_settings().fee_income_category_name
        academic_period = fee.academic_period
    else:
        total_debt = total_paid = amount
        remaining = ZERO
        service_name = "General Collection"
        academic_period = None

    return FeeReceipt(
        receipt_number=_receipt_number(db, payment),
        payment=payment,
        organization_name=organization.name if organization is not None else "",
        student_name=payment.student.full_name,
        operator_name=(operator.full_name or operator.email) if operator is not None else "",
        service_name=service_name,
        academic_period=academic_period,
        total_debt=total_debt,
        total_paid=total_paid,
        remaining_debt=remaining,
    )
