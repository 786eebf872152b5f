from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from feeledger.app.core.errors import NotFoundError, OverpaymentError, StoreError
from feeledger.app.db.base import Base  # noqa: F401
from feeledger.app.db.session import SessionLocal
from feeledger.app.models.user import User
from feeledger.app.services.actions import run_action


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user():
    return User(id=3, email="clerk@example.com", organization_id=7, role="accountant")


def test_success_wraps_data_and_passes_organization(db, user):
    seen = {}

    def fn(session, *, organization_id, value):
        seen["organization_id"] = organization_id
        return value * 2

    result = run_action(db, user, "double", fn, value=21)

    assert result.success is True
    assert result.data == 42
    assert seen["organization_id"] == 7


def test_expected_failure_becomes_structured_result(db, user):
    def fn(session, *, organization_id):
        raise NotFoundError("Student")

    result = run_action(db, user, "lookup", fn)

    assert result.success is False
    assert result.error == "Student not found"
    assert result.error_code == "not_found"


def test_overpayment_message_names_remaining_amount(db, user):
    def fn(session, *, organization_id):
        raise OverpaymentError(Decimal("300"))

    result = run_action(db, user, "pay", fn)

    assert result.error_code == "overpayment"
    assert "300.00" in result.error


def test_operational_error_is_retryable_store_error(db, user):
    def fn(session, *, organization_id):
        raise OperationalError("UPDATE finance_accounts", {}, Exception("database is locked"))

    with pytest.raises(StoreError) as exc_info:
        run_action(db, user, "pay", fn)
    assert exc_info.value.retryable is True
    assert "finance_accounts" not in exc_info.value.message


def test_other_database_errors_are_not_retryable(db, user):
    def fn(session, *, organization_id):
        raise IntegrityError("INSERT INTO fee_payments", {}, Exception("constraint failed"))

    with pytest.raises(StoreError) as exc_info:
        run_action(db, user, "pay", fn)
    assert exc_info.value.retryable is False
