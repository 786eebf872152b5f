"""Fee ledger write path.

Every change to an account balance, an installment's paid amount or a fee's
status goes through this module. Each public operation is one unit of work:
rows are locked (FOR UPDATE where the database supports it, version counters
everywhere), all writes are flushed together and committed once. A version
conflict rolls the whole unit back and replays it against fresh rows.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from feeledger.app.core.errors import NotFoundError, OverpaymentError, StoreError, ValidationError
from feeledger.app.core.money import ZERO, round2, split_vat, to_decimal
from feeledger.app.core.settings import get_settings
from feeledger.app.core.time import as_date, utc_now, utc_today
from feeledger.app.models.fee_installment import FeeInstallment
from feeledger.app.models.fee_payment import PAYMENT_METHODS, FeePayment
from feeledger.app.models.finance_account import FinanceAccount
from feeledger.app.models.finance_transaction import TRANSACTION_TYPES, FinanceTransaction
from feeledger.app.models.student import Student
from feeledger.app.models.student_fee import StudentFee
from feeledger.app.services.categories import get_or_create_category

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BillingContext:
    """What a payment is for, resolved once before anything is written."""

    installment: Optional[FeeInstallment]
    fee: Optional[StudentFee]
    vat_rate: Decimal
    service_id: Optional[int]
    description: str


@dataclass
class CancellationOutcome:
    fee: StudentFee
    total_paid: Decimal
    refund_transaction: Optional[FinanceTransaction] = None


def run_unit_of_work(db: Session, work: Callable[[], T], *, action: str) -> T:
    """Run `work` and commit; replay it when a concurrent writer won the race."""
    attempts = max(1, get_settings().ledger_max_retries)
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except StaleDataError:
            db.rollback()
            logger.warning("%s hit a concurrent update (attempt %s/%s)", action, attempt, attempts)
        except Exception:
            db.rollback()
            raise
    raise StoreError("The record was changed by another request. Please retry.", retryable=True)


def derive_installment_status(
    amount: Decimal,
    paid_amount: Decimal,
    due_date: date,
    today: date,
    current: Optional[str] = None,
) -> str:
    if current == "cancelled":
        return "cancelled"
    amount = to_decimal(amount)
    paid = to_decimal(paid_amount)
    if paid >= amount:
        return "paid"
    if paid > 0:
        return "partial"
    if due_date < today:
        return "overdue"
    return "pending"


def lock_account(db: Session, *, organization_id: int, account_id: int) -> FinanceAccount:
    account = (
        db.query(FinanceAccount)
        .filter(FinanceAccount.id == account_id, FinanceAccount.organization_id == organization_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if account is None:
        raise NotFoundError("Account")
    return account


def lock_fee(db: Session, *, organization_id: int, fee_id: int) -> StudentFee:
    fee = (
        db.query(StudentFee)
        .filter(StudentFee.id == fee_id, StudentFee.organization_id == organization_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if fee is None:
        raise NotFoundError("Student fee")
    return fee


def _lock_installments(db: Session, fee: StudentFee) -> List[FeeInstallment]:
    return (
        db.query(FeeInstallment)
        .filter(FeeInstallment.fee_id == fee.id)
        .order_by(FeeInstallment.installment_number.asc())
        .with_for_update()
        .populate_existing()
        .all()
    )


def _apply_balance(account: FinanceAccount, transaction_type: str, amount: Decimal) -> None:
    delta = amount if transaction_type == "income" else -amount
    account.balance = round2(to_decimal(account.balance) + delta)


def post_transaction(
    db: Session,
    *,
    organization_id: int,
    user_id: int,
    account: FinanceAccount,
    category_id: int,
    transaction_type: str,
    amount: Decimal,
    transaction_date: date,
    description: str,
    vat_rate: Decimal | int = 0,
    service_id: Optional[int] = None,
    reference_no: Optional[str] = None,
    related_payment_id: Optional[int] = None,
    related_fee_id: Optional[int] = None,
) -> FinanceTransaction:
    """Insert a ledger entry and move the account balance with it. Does not commit."""
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("Transaction type must be income or expense.")
    gross = round2(amount)
    if gross <= 0:
        raise ValidationError("Transaction amount must be greater than zero.")
    rate = to_decimal(vat_rate)
    if rate < 0 or rate > 100:
        raise ValidationError("VAT rate must be between 0 and 100.")
    split = split_vat(gross, rate)
    transaction = FinanceTransaction(
        organization_id=organization_id,
        account_id=account.id,
        category_id=category_id,
        service_id=service_id,
        type=transaction_type,
        amount=gross,
        subtotal=split.subtotal,
        vat_rate=rate,
        vat_amount=split.vat_amount,
        description=description,
        transaction_date=transaction_date,
        reference_no=reference_no,
        related_payment_id=related_payment_id,
        related_fee_id=related_fee_id,
        created_by=user_id,
    )
    db.add(transaction)
    _apply_balance(account, transaction_type, gross)
    return transaction


def reverse_transaction(db: Session, *, transaction: FinanceTransaction, account: FinanceAccount) -> FinanceTransaction:
    """Soft-delete a ledger entry and undo its balance effect. Does not commit."""
    if transaction.deleted_at is not None:
        raise ValidationError("Transaction is already deleted.")
    opposite = "expense" if transaction.type == "income" else "income"
    _apply_balance(account, opposite, to_decimal(transaction.amount))
    transaction.deleted_at = utc_now()
    return transaction


def resolve_billing_context(
    student: Student,
    installment: Optional[FeeInstallment],
    fee: Optional[StudentFee],
    notes: Optional[str],
) -> BillingContext:
    description = notes or f"{student.full_name} - installment payment"
    if installment is None or fee is None:
        return BillingContext(installment=None, fee=None, vat_rate=ZERO, service_id=None, description=description)
    # the fee keeps the VAT terms it was issued with, regardless of today's catalog
    return BillingContext(
        installment=installment,
        fee=fee,
        vat_rate=to_decimal(fee.vat_rate),
        service_id=fee.service_id,
        description=description,
    )


def _get_student(db: Session, *, organization_id: int, student_id: int) -> Student:
    student = (
        db.query(Student)
        .filter(Student.id == student_id, Student.organization_id == organization_id)
        .first()
    )
    if student is None:
        raise NotFoundError("Student")
    return student


def _apply_payment_to_installment(installment: FeeInstallment, amount: Decimal, now: datetime) -> None:
    was_paid = installment.status == "paid"
    installment.paid_amount = round2(to_decimal(installment.paid_amount) + amount)
    installment.status = "paid" if installment.paid_amount >= to_decimal(installment.amount) else "partial"
    if installment.status == "paid" and not was_paid:
        installment.paid_at = now


def _cascade_fee_completion(db: Session, fee: StudentFee) -> None:
    db.flush()
    installments = db.query(FeeInstallment).filter(FeeInstallment.fee_id == fee.id).all()
    live = [inst for inst in installments if inst.status != "cancelled"]
    if live and all(inst.status == "paid" for inst in live):
        fee.status = "completed"


def create_fee_payment(
    db: Session,
    *,
    organization_id: int,
    user_id: int,
    student_id: int,
    account_id: int,
    amount: Decimal | float | int | str,
    payment_method: str,
    installment_id: Optional[int] = None,
    reference_no: Optional[str] = None,
    notes: Optional[str] = None,
    payment_date: Optional[datetime] = None,
) -> FeePayment:
    """Record a payment, its income transaction and the installment/fee updates atomically."""
    payment_amount = round2(amount)
    if payment_amount <= 0:
        raise ValidationError("Payment amount must be greater than zero.")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method '{payment_method}'.")
    settings = get_settings()

    def _record() -> FeePayment:
        now = utc_now()
        paid_on = payment_date or now
        student = _get_student(db, organization_id=organization_id, student_id=student_id)

        installment = None
        fee = None
        if installment_id is not None:
            target = (
                db.query(FeeInstallment.fee_id)
                .filter(FeeInstallment.id == installment_id, FeeInstallment.organization_id == organization_id)
                .first()
            )
            if target is None:
                raise NotFoundError("Installment")
            # fee, installments, account: the lock order cancellation uses too
            fee = lock_fee(db, organization_id=organization_id, fee_id=target.fee_id)
            installment = (
                db.query(FeeInstallment)
                .filter(FeeInstallment.id == installment_id)
                .with_for_update()
                .populate_existing()
                .one()
            )
            if fee.student_id != student.id:
                raise ValidationError("The installment belongs to a different student.")
            if fee.status != "active" or installment.status == "cancelled":
                raise ValidationError("Payments can only be recorded against an active fee.")
            remaining = round2(to_decimal(installment.amount) - to_decimal(installment.paid_amount))
            if payment_amount > remaining:
                raise OverpaymentError(remaining)

        account = lock_account(db, organization_id=organization_id, account_id=account_id)
        if not account.is_active:
            raise ValidationError("Payments cannot be recorded against an inactive account.")

        payment = FeePayment(
            organization_id=organization_id,
            student_id=student.id,
            installment_id=installment.id if installment is not None else None,
            account_id=account.id,
            amount=payment_amount,
            payment_method=payment_method,
            reference_no=reference_no or None,
            notes=notes or None,
            payment_date=paid_on,
            created_by=user_id,
        )
        db.add(payment)
        db.flush()

        category = get_or_create_category(
            db,
            organization_id=organization_id,
            name=settings.fee_income_category_name,
            category_type="income",
            icon=settings.fee_income_category_icon,
            is_system=True,
        )
        context = resolve_billing_context(student, installment, fee, notes)
        post_transaction(
            db,
            organization_id=organization_id,
            user_id=user_id,
            account=account,
            category_id=category.id,
            transaction_type="income",
            amount=payment_amount,
            transaction_date=as_date(paid_on),
            description=context.description,
            vat_rate=context.vat_rate,
            service_id=context.service_id,
            reference_no=reference_no or None,
            related_payment_id=payment.id,
        )

        if context.installment is not None:
            _apply_payment_to_installment(context.installment, payment_amount, now)
            # bump the fee version so a concurrent cancellation conflicts
            context.fee.updated_at = now
            _cascade_fee_completion(db, context.fee)
        db.flush()
        return payment

    payment = run_unit_of_work(db, _record, action="create_fee_payment")
    logger.info(
        "Recorded payment %s of %s for student %s (org=%s user=%s installment=%s)",
        payment.id,
        payment_amount,
        student_id,
        organization_id,
        user_id,
        installment_id,
    )
    return payment


def _first_payment_account_id(db: Session, fee: StudentFee) -> Optional[int]:
    first = (
        db.query(FeePayment.account_id)
        .join(FeeInstallment, FeePayment.installment_id == FeeInstallment.id)
        .filter(FeeInstallment.fee_id == fee.id)
        .order_by(FeePayment.payment_date.asc(), FeePayment.id.asc())
        .first()
    )
    return first.account_id if first else None


def cancel_student_fee(
    db: Session,
    *,
    organization_id: int,
    user_id: int,
    fee_id: int,
    refund: bool = False,
    refund_account_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> CancellationOutcome:
    """Cancel a fee, optionally refunding everything collected on it. Irreversible."""
    settings = get_settings()

    def _cancel() -> CancellationOutcome:
        now = utc_now()
        fee = lock_fee(db, organization_id=organization_id, fee_id=fee_id)
        if fee.status == "cancelled":
            raise ValidationError("This fee is already cancelled.")
        installments = _lock_installments(db, fee)
        total_paid = round2(sum((to_decimal(inst.paid_amount) for inst in installments), ZERO))

        fee.status = "cancelled"
        fee.cancelled_at = now
        fee.cancel_reason = reason
        for inst in installments:
            if inst.status != "paid":
                inst.status = "cancelled"
        # the status writes open the transaction the refund savepoint nests in
        db.flush()

        refund_transaction = None
        if refund and total_paid > 0:
            account_id = refund_account_id or _first_payment_account_id(db, fee)
            if account_id is None:
                raise ValidationError("No payment account found for the refund; choose a refund account.")
            account = lock_account(db, organization_id=organization_id, account_id=account_id)
            category = get_or_create_category(
                db,
                organization_id=organization_id,
                name=settings.fee_refund_category_name,
                category_type="expense",
                icon=settings.fee_refund_category_icon,
                is_system=True,
            )
            description = f"Refund for cancelled fee #{fee.id}"
            if reason:
                description = f"{description}: {reason}"
            refund_transaction = post_transaction(
                db,
                organization_id=organization_id,
                user_id=user_id,
                account=account,
                category_id=category.id,
                transaction_type="expense",
                amount=total_paid,
                transaction_date=now.date(),
                description=description,
                vat_rate=fee.vat_rate,
                service_id=fee.service_id,
                related_fee_id=fee.id,
            )

        db.flush()
        return CancellationOutcome(fee=fee, total_paid=total_paid, refund_transaction=refund_transaction)

    outcome = run_unit_of_work(db, _cancel, action="cancel_student_fee")
    logger.info(
        "Cancelled fee %s (org=%s user=%s refund=%s total_paid=%s)",
        fee_id,
        organization_id,
        user_id,
        outcome.refund_transaction is not None,
        outcome.total_paid,
    )
    return outcome


def mark_overdue_installments(db: Session, *, organization_id: int, today: Optional[date] = None) -> int:
    """Persist `overdue` on pending installments of active fees whose due date has passed."""
    as_of = today or utc_today()

    def _sweep() -> int:
        rows = (
            db.query(FeeInstallment)
            .join(StudentFee, FeeInstallment.fee_id == StudentFee.id)
            .filter(
                FeeInstallment.organization_id == organization_id,
                FeeInstallment.status == "pending",
                FeeInstallment.due_date < as_of,
                StudentFee.status == "active",
            )
            .with_for_update()
            .populate_existing()
            .all()
        )
        for inst in rows:
            inst.status = derive_installment_status(inst.amount, inst.paid_amount, inst.due_date, as_of, inst.status)
        db.flush()
        return len(rows)

    updated = run_unit_of_work(db, _sweep, action="mark_overdue_installments")
    if updated:
        logger.info("Marked %s installments overdue (org=%s as_of=%s)", updated, organization_id, as_of)
    return updated
