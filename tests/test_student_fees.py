from datetime import date
from decimal import Decimal

import pytest

from feeledger.app.core.errors import NotFoundError, ValidationError
from feeledger.app.db.base import Base
from feeledger.app.db.session import SessionLocal, engine
from feeledger.app.models.organization import Organization
from feeledger.app.models.student import Student
from feeledger.app.models.student_fee import StudentFee
from feeledger.app.services.catalog import create_service, service_cache
from feeledger.app.services.finance_settings import update_finance_settings
from feeledger.app.services.ledger import mark_overdue_installments
from feeledger.app.services.student_fees import (
    bulk_assign_student_fees,
    create_student_fee,
    get_student_fee_detail,
    installment_due_dates,
    list_student_fees,
)


@pytest.fixture(autouse=True)
def setup_db():
    service_cache.clear()
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
    student = Student(organization_id=org.id, full_name="Alan Student")
    db.add(student)
    db.commit()
    return org, student


def test_installment_due_dates_clamp_to_month_end():
    dates = installment_due_dates(date(2030, 12, 15), 3, 31)
    assert dates == [date(2030, 12, 31), date(2031, 1, 31), date(2031, 2, 28)]


def test_create_fee_splits_net_amount_into_installments(db):
    org, student = _seed(db)
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("1100"),
        installment_count=3,
        academic_period="2030-2031",
        discount_amount=Decimal("100"),
        discount_type="fixed",
        payment_due_day=5,
        start_date=date(2030, 9, 20),
    )

    assert fee.net_amount == Decimal("1000.00")
    assert fee.status == "active"
    amounts = [inst.amount for inst in fee.installments]
    assert amounts == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]
    assert sum(amounts) == fee.net_amount
    assert [inst.due_date for inst in fee.installments] == [date(2030, 9, 5), date(2030, 10, 5), date(2030, 11, 5)]
    assert all(inst.status == "pending" and inst.paid_amount == Decimal("0.00") for inst in fee.installments)


def test_percentage_discount_and_vat_amount(db):
    org, student = _seed(db)
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("1500"),
        installment_count=1,
        academic_period="2030-2031",
        discount_amount=Decimal("20"),
        discount_type="percentage",
        vat_rate=Decimal("20"),
        start_date=date(2030, 9, 1),
    )
    assert fee.net_amount == Decimal("1200.00")
    assert fee.vat_amount == Decimal("200.00")


def test_fee_takes_vat_rate_from_service(db):
    org, student = _seed(db)
    service = create_service(
        db,
        organization_id=org.id,
        name="Tuition",
        service_type="income",
        unit_price=Decimal("1000"),
        vat_rate=Decimal("10"),
    )
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("1100"),
        installment_count=1,
        academic_period="2030-2031",
        service_id=service.id,
        start_date=date(2030, 9, 1),
    )
    assert fee.vat_rate == Decimal("10.00")
    assert fee.vat_amount == Decimal("100.00")
    assert fee.service_id == service.id


def test_due_day_defaults_to_finance_settings(db):
    org, student = _seed(db)
    update_finance_settings(db, organization_id=org.id, payment_due_day=15)
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("200"),
        installment_count=2,
        academic_period="2030-2031",
        start_date=date(2030, 9, 1),
    )
    assert [inst.due_date for inst in fee.installments] == [date(2030, 9, 15), date(2030, 10, 15)]


@pytest.mark.parametrize(
    "terms",
    [
        {"installment_count": 0},
        {"discount_amount": Decimal("1000"), "discount_type": "fixed"},
        {"discount_amount": Decimal("120"), "discount_type": "percentage"},
        {"academic_period": "  "},
        {"vat_rate": Decimal("120")},
        {"total_amount": "abc"},
    ],
)
def test_invalid_fee_terms_are_rejected(db, terms):
    org, student = _seed(db)
    params = dict(
        student_id=student.id,
        total_amount=Decimal("1000"),
        installment_count=2,
        academic_period="2030-2031",
    )
    params.update(terms)
    with pytest.raises(ValidationError):
        create_student_fee(db, organization_id=org.id, **params)
    assert db.query(StudentFee).count() == 0


def test_installment_plan_needs_at_least_a_cent_per_installment(db):
    org, student = _seed(db)
    with pytest.raises(ValidationError):
        create_student_fee(
            db,
            organization_id=org.id,
            student_id=student.id,
            total_amount=Decimal("0.02"),
            installment_count=3,
            academic_period="2030-2031",
        )
    assert db.query(StudentFee).count() == 0

    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("0.02"),
        installment_count=2,
        academic_period="2030-2031",
    )
    assert [inst.amount for inst in fee.installments] == [Decimal("0.01"), Decimal("0.01")]


def test_fee_for_student_of_other_organization_is_not_found(db):
    org, student = _seed(db)
    other_org = Organization(name="Other")
    db.add(other_org)
    db.commit()
    with pytest.raises(NotFoundError):
        create_student_fee(
            db,
            organization_id=other_org.id,
            student_id=student.id,
            total_amount=Decimal("100"),
            installment_count=1,
            academic_period="2030-2031",
        )


def test_bulk_assign_skips_unknown_students(db):
    org, student = _seed(db)
    second = Student(organization_id=org.id, full_name="Barbara Student")
    db.add(second)
    db.commit()

    assigned = bulk_assign_student_fees(
        db,
        organization_id=org.id,
        student_ids=[student.id, second.id, 9999, student.id],
        total_amount=Decimal("600"),
        installment_count=2,
        academic_period="2030-2031",
        start_date=date(2030, 9, 1),
    )

    assert assigned == 2
    assert db.query(StudentFee).count() == 2


def test_list_and_detail(db):
    org, student = _seed(db)
    fee = create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("300"),
        installment_count=3,
        academic_period="2030-2031",
        start_date=date(2030, 9, 1),
    )

    fees = list_student_fees(db, organization_id=org.id, student_id=student.id)
    assert [f.id for f in fees] == [fee.id]
    assert list_student_fees(db, organization_id=org.id, academic_period="2031-2032") == []
    with pytest.raises(ValidationError):
        list_student_fees(db, organization_id=org.id, status="archived")

    detail = get_student_fee_detail(db, organization_id=org.id, fee_id=fee.id)
    assert [inst.installment_number for inst in detail.installments] == [1, 2, 3]


def test_mark_overdue_persists_status_for_past_due_installments(db):
    org, student = _seed(db)
    create_student_fee(
        db,
        organization_id=org.id,
        student_id=student.id,
        total_amount=Decimal("300"),
        installment_count=3,
        academic_period="2030-2031",
        payment_due_day=1,
        start_date=date(2030, 1, 1),
    )

    updated = mark_overdue_installments(db, organization_id=org.id, today=date(2030, 2, 15))
    assert updated == 2
    assert mark_overdue_installments(db, organization_id=org.id, today=date(2030, 2, 15)) == 0

    fee = db.query(StudentFee).one()
    db.refresh(fee)
    assert [inst.status for inst in fee.installments] == ["overdue", "overdue", "pending"]
