from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

CategoryType = Literal["income", "expense"]


class FinanceCategoryCreate(BaseModel):
    name: str
    type: CategoryType
    parent_id: Optional[int] = None
    icon: Optional[str] = None


class FinanceCategoryUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    sort_order: Optional[int] = None


class FinanceCategoryRead(BaseModel):
    id: int
    organization_id: int
    name: str
    type: str
    parent_id: Optional[int] = None
    icon: Optional[str] = None
    sort_order: int
    is_system: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
