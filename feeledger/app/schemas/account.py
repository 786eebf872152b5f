"""Finance account schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

AccountType = Literal["cash", "bank", "pos"]


class FinanceAccountCreate(BaseModel):
    name: str
    account_type: AccountType = "cash"
    balance: Decimal = Decimal("0.00")
    currency: Optional[str] = None


class FinanceAccountUpdate(BaseModel):
    # balance is deliberately absent: it only moves through ledger postings
    name: Optional[str] = None
    account_type: Optional[AccountType] = None
    is_active: Optional[bool] = None


class FinanceAccountRead(BaseModel):
    id: int
    organization_id: int
    name: str
    account_type: str
    balance: Decimal
    currency: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
