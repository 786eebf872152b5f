from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StudentCreate(BaseModel):
    full_name: str
    email: Optional[str] = None


class StudentRead(BaseModel):
    id: int
    organization_id: int
    full_name: str
    email: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
