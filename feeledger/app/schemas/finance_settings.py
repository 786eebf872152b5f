from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class AcademicPeriod(BaseModel):
    name: str
    start_date: date
    end_date: date
    is_active: bool = False


class FinanceSettingsUpdate(BaseModel):
    currency: Optional[str] = None
    default_installments: Optional[int] = None
    payment_due_day: Optional[int] = None
    academic_periods: Optional[List[AcademicPeriod]] = None


class FinanceSettingsRead(BaseModel):
    id: int
    organization_id: int
    currency: str
    default_installments: int
    payment_due_day: int
    academic_periods: List[AcademicPeriod]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
