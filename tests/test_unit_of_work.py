from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm.exc import StaleDataError

from feeledger.app.core.errors import StoreError, ValidationError
from feeledger.app.core.settings import get_settings
from feeledger.app.db.base import Base
from feeledger.app.db.session import SessionLocal, engine
from feeledger.app.models.finance_account import FinanceAccount
from feeledger.app.models.organization import Organization
from feeledger.app.services.ledger import derive_installment_status, run_unit_of_work


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_unit_of_work_replays_after_version_conflict():
    db = SessionLocal()
    attempts = []

    def work():
        attempts.append(1)
        if len(attempts) == 1:
            raise StaleDataError("row changed")
        return "done"

    try:
        assert run_unit_of_work(db, work, action="test") == "done"
    finally:
        db.close()
    assert len(attempts) == 2


def test_unit_of_work_gives_up_with_retryable_store_error():
    db = SessionLocal()
    attempts = []

    def work():
        attempts.append(1)
        raise StaleDataError("row changed")

    try:
        with pytest.raises(StoreError) as exc_info:
            run_unit_of_work(db, work, action="test")
    finally:
        db.close()
    assert exc_info.value.retryable is True
    assert len(attempts) == get_settings().ledger_max_retries


def test_unit_of_work_does_not_retry_expected_failures():
    db = SessionLocal()
    attempts = []

    def work():
        attempts.append(1)
        raise ValidationError("bad input")

    try:
        with pytest.raises(ValidationError):
            run_unit_of_work(db, work, action="test")
    finally:
        db.close()
    assert len(attempts) == 1


def test_stale_account_write_raises_version_conflict():
    setup = SessionLocal()
    org = Organization(name="Acme")
    setup.add(org)
    setup.commit()
    account = FinanceAccount(organization_id=org.id, name="Cash", account_type="cash", balance=Decimal("0"), currency="TRY")
    setup.add(account)
    setup.commit()
    account_id = account.id
    setup.close()

    first = SessionLocal()
    second = SessionLocal()
    try:
        stale = first.get(FinanceAccount, account_id)
        fresh = second.get(FinanceAccount, account_id)
        fresh.balance = Decimal("100.00")
        second.commit()

        stale.balance = Decimal("50.00")
        with pytest.raises(StaleDataError):
            first.commit()
        first.rollback()
    finally:
        first.close()
        second.close()


def test_derive_installment_status():
    today = date(2030, 6, 1)
    assert derive_installment_status(Decimal("100"), Decimal("100"), date(2030, 1, 1), today) == "paid"
    assert derive_installment_status(Decimal("100"), Decimal("10"), date(2030, 1, 1), today) == "partial"
    assert derive_installment_status(Decimal("100"), Decimal("0"), date(2030, 5, 31), today) == "overdue"
    assert derive_installment_status(Decimal("100"), Decimal("0"), date(2030, 6, 1), today) == "pending"
    assert derive_installment_status(Decimal("100"), Decimal("0"), date(2030, 1, 1), today, "cancelled") == "cancelled"
