from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from feeledger.app.core.errors import NotFoundError, ValidationError
from feeledger.app.db.base import Base
from feeledger.app.db.session import SessionLocal, engine
from feeledger.app.models.fee_installment import FeeInstallment
from feeledger.app.models.finance_category import FinanceCategory
from feeledger.app.models.finance_transaction import FinanceTransaction
from feeledger.app.models.organization import Organization
from feeledger.app.models.student import Student
from feeledger.app.models.student_fee import StudentFee
from feeledger.app.models.user import User
from feeledger.app.services.accounts import create_account
from feeledger.app.services import ledger
from feeledger.app.services.ledger import cancel_student_fee, create_fee_payment
from feeledger.app.services.student_fees import create_student_fee


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _seed(db):
    org = Organization(name="Acme School")
    db.add(org)
    db.commit()
    user = User(email="admin@example.com", hashed_password="x", organization_id=org.id)
    student = Student(organization_id=org.id, full_name="Grace Student")
    db.add_all([user, student])
    db.commit()
    return org, user, student


def _fee_with_first_installment_paid(db, org, user, student, account, vat_rate=None):
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("1000"),
        installment_count=2,
        academic_period="2030-2031",
        vat_rate=vat_rate,
        start_date=date(2030, 9, 1),
    )
    create_fee_payment(
        db,
        organization_id=org.id,
        user_id=user.id,
        student_id=student.id,
        account_id=account.id,
        amount=Decimal("500"),
        payment_method="bank_transfer",
        installment_id=fee.installments[0].id,
        payment_date=datetime(2030, 9, 2, tzinfo=timezone.utc),
    )
    return fee


def test_cancel_with_refund_debits_first_payment_account(db):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    fee = _fee_with_first_installment_paid(db, org, user, student, bank)

    outcome = cancel_student_fee(
        db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True, reason="Moved away"
    )

    assert outcome.total_paid == Decimal("500.00")
    refund_tx = outcome.refund_transaction
    assert refund_tx is not None
    assert refund_tx.type == "expense"
    assert refund_tx.amount == Decimal("500.00")
    assert refund_tx.account_id == bank.id
    assert refund_tx.related_fee_id == fee.id
    category = db.query(FinanceCategory).filter(FinanceCategory.id == refund_tx.category_id).one()
    assert category.name == "Student Fee Refund"

    db.refresh(bank)
    db.refresh(fee)
    assert bank.balance == Decimal("0.00")
    assert fee.status == "cancelled"
    assert fee.cancel_reason == "Moved away"
    assert fee.cancelled_at is not None
    statuses = [inst.status for inst in fee.installments]
    assert statuses == ["paid", "cancelled"]


def test_cancel_with_refund_to_explicit_account(db):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    cash = create_account(db, organization_id=org.id, name="Cash", account_type="cash", balance=Decimal("800"))
    fee = _fee_with_first_installment_paid(db, org, user, student, bank)

    outcome = cancel_student_fee(
        db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True, refund_account_id=cash.id
    )

    assert outcome.refund_transaction.account_id == cash.id
    db.refresh(cash)
    db.refresh(bank)
    assert cash.balance == Decimal("300.00")
    assert bank.balance == Decimal("500.00")


def test_refund_uses_the_fee_vat_rate(db):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    fee = _fee_with_first_installment_paid(db, org, user, student, bank, vat_rate=Decimal("20"))

    outcome = cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True)

    assert outcome.refund_transaction.vat_amount == Decimal("83.33")


def test_cancel_without_refund_keeps_balances(db):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    fee = _fee_with_first_installment_paid(db, org, user, student, bank)

    outcome = cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id)

    assert outcome.refund_transaction is None
    db.refresh(bank)
    assert bank.balance == Decimal("500.00")
    assert db.query(FinanceTransaction).filter(FinanceTransaction.type == "expense").count() == 0


def test_cancelling_twice_is_rejected(db):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    fee = _fee_with_first_installment_paid(db, org, user, student, bank)
    cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True)

    with pytest.raises(ValidationError):
        cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True)

    assert db.query(FinanceTransaction).filter(FinanceTransaction.type == "expense").count() == 1


def test_refund_of_unpaid_fee_posts_nothing(db):
    org, user, student = _seed(db)
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("300"),
        installment_count=3,
        academic_period="2030-2031",
        start_date=date(2030, 9, 1),
    )

    outcome = cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True)

    assert outcome.total_paid == Decimal("0.00")
    assert outcome.refund_transaction is None
    assert db.query(FeeInstallment).filter(FeeInstallment.status == "cancelled").count() == 3


def _assert_fee_untouched(db, fee_id):
    db.expire_all()
    fee = db.query(StudentFee).filter(StudentFee.id == fee_id).one()
    assert fee.status == "active"
    assert fee.cancelled_at is None
    assert [inst.status for inst in fee.installments] == ["paid", "pending"]
    assert db.query(FinanceTransaction).count() == 1


def test_refund_to_unknown_account_aborts_the_cancellation(db):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    fee = _fee_with_first_installment_paid(db, org, user, student, bank)

    with pytest.raises(NotFoundError):
        cancel_student_fee(
            db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True, refund_account_id=9999
        )

    _assert_fee_untouched(db, fee.id)
    db.refresh(bank)
    assert bank.balance == Decimal("500.00")


def test_failed_refund_write_leaves_no_refund_category_behind(db, monkeypatch):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    fee = _fee_with_first_installment_paid(db, org, user, student, bank)

    def _failing_post(*args, **kwargs):
        raise ValidationError("ledger write failed")

    monkeypatch.setattr(ledger, "post_transaction", _failing_post)
    with pytest.raises(ValidationError):
        cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True)

    _assert_fee_untouched(db, fee.id)
    assert db.query(FinanceCategory).filter(FinanceCategory.name == "Student Fee Refund").count() == 0


def test_payment_and_refund_lock_fee_before_account(db, monkeypatch):
    org, user, student = _seed(db)
    bank = create_account(db, organization_id=org.id, name="Bank", account_type="bank")
    locks = []
    real_lock_fee = ledger.lock_fee
    real_lock_account = ledger.lock_account

    def _lock_fee(*args, **kwargs):
        locks.append("fee")
        return real_lock_fee(*args, **kwargs)

    def _lock_account(*args, **kwargs):
        locks.append("account")
        return real_lock_account(*args, **kwargs)

    monkeypatch.setattr(ledger, "lock_fee", _lock_fee)
    monkeypatch.setattr(ledger, "lock_account", _lock_account)

    fee = _fee_with_first_installment_paid(db, org, user, student, bank)
    assert locks == ["fee", "account"]

    locks.clear()
    cancel_student_fee(db, organization_id=org.id, user_id=user.id, fee_id=fee.id, refund=True)
    assert locks == ["fee", "account"]
