"""Service catalog schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from feeledger.app.schemas.category import CategoryType


class CategorySummary(BaseModel):
    name: str
    icon: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class FinanceServiceCreate(BaseModel):
    name: str
    type: CategoryType
    category_id: Optional[int] = None
    unit_price: Decimal
    vat_rate: Decimal = Decimal("0")
    description: Optional[str] = None


class FinanceServiceUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[CategoryType] = None
    category_id: Optional[int] = None
    unit_price: Optional[Decimal] = None
    vat_rate: Optional[Decimal] = None
    is_active: Optional[bool] = None
    description: Optional[str] = None


class FinanceServiceRead(BaseModel):
    id: int
    organization_id: int
    name: str
    type: str
    category_id: Optional[int] = None
    category: Optional[CategorySummary] = None
    unit_price: Decimal
    vat_rate: Decimal
    is_active: bool
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
