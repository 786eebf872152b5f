"""Per-organization accounting settings."""

from typing import List, Optional

from sqlalchemy.orm import Session

from feeledger.app.core.errors import ValidationError
from feeledger.app.core.settings import get_settings
from feeledger.app.models.finance_settings import FinanceSettings
from feeledger.app.schemas.finance_settings import AcademicPeriod


def get_finance_settings(db: Session, *, organization_id: int, commit: bool = True) -> FinanceSettings:
    """Return the organization's settings, creating the defaults on first access."""
    settings_row = db.query(FinanceSettings).filter(FinanceSettings.organization_id == organization_id).first()
    if settings_row is not None:
        return settings_row
    settings_row = FinanceSettings(
        organization_id=organization_id,
        currency=get_settings().default_currency,
        default_installments=1,
        payment_due_day=1,
        academic_periods=[],
    )
    db.add(settings_row)
    if commit:
        db.commit()
        db.refresh(settings_row)
    else:
        db.flush()
    return settings_row


def update_finance_settings(
    db: Session,
    *,
    organization_id: int,
    currency: Optional[str] = None,
    default_installments: Optional[int] = None,
    payment_due_day: Optional[int] = None,
    academic_periods: Optional[List[AcademicPeriod]] = None,
) -> FinanceSettings:
    settings_row = get_finance_settings(db, organization_id=organization_id, commit=False)
    if currency is not None:
        code = currency.strip().upper()
        if len(code) != 3:
            raise ValidationError("Currency must be a three-letter code.")
        settings_row.currency = code
    if default_installments is not None:
        if default_installments < 1:
            raise ValidationError("Default installment count must be at least 1.")
        settings_row.default_installments = default_installments
    if payment_due_day is not None:
        if not 1 <= payment_due_day <= 28:
            raise ValidationError("Payment due day must be between 1 and 28.")
        settings_row.payment_due_day = payment_due_day
    if academic_periods is not None:
        for period in academic_periods:
            if period.end_date < period.start_date:
                raise ValidationError(f"Academic period '{period.name}' ends before it starts.")
        settings_row.academic_periods = [period.model_dump(mode="json") for period in academic_periods]
    db.commit()
    db.refresh(settings_row)
    return settings_row
