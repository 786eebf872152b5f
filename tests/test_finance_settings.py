from datetime import date

import pytest

from feeledger.app.core.errors import ValidationError
from feeledger.app.db.base import Base
from feeledger.app.db.session import SessionLocal, engine
from feeledger.app.models.finance_settings import FinanceSettings
from feeledger.app.models.organization import Organization
from feeledger.app.schemas.finance_settings import AcademicPeriod
from feeledger.app.services.finance_settings import get_finance_settings, update_finance_settings


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


def _org(db):
    org = Organization(name="Acme School")
    db.add(org)
    db.commit()
    return org


def test_defaults_are_created_once(db):
    org = _org(db)
    first = get_finance_settings(db, organization_id=org.id)
    second = get_finance_settings(db, organization_id=org.id)
    assert first.id == second.id
    assert first.currency == "TRY"
    assert first.default_installments == 1
    assert first.payment_due_day == 1
    assert first.academic_periods == []
    assert db.query(FinanceSettings).count() == 1


def test_update_settings_and_periods(db):
    org = _org(db)
    period = AcademicPeriod(name="2030-2031", start_date=date(2030, 9, 1), end_date=date(2031, 6, 30), is_active=True)
    updated = update_finance_settings(
        db,
        organization_id=org.id,
        currency="usd",
        default_installments=10,
        payment_due_day=5,
        academic_periods=[period],
    )
    assert updated.currency == "USD"
    assert updated.default_installments == 10
    assert updated.payment_due_day == 5
    assert updated.academic_periods[0]["name"] == "2030-2031"
    assert updated.academic_periods[0]["start_date"] == "2030-09-01"


@pytest.mark.parametrize(
    "changes",
    [
        {"currency": "EURO"},
        {"default_installments": 0},
        {"payment_due_day": 29},
        {
            "academic_periods": [
                AcademicPeriod(name="Backwards", start_date=date(2031, 1, 1), end_date=date(2030, 1, 1))
            ]
        },
    ],
)
def test_invalid_settings_are_rejected(db, changes):
    org = _org(db)
    with pytest.raises(ValidationError):
        update_finance_settings(db, organization_id=org.id, **changes)
