"""Finance transaction schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

TransactionType = Literal["income", "expense"]


class FinanceTransactionCreate(BaseModel):
    account_id: int
    category_id: int
    type: TransactionType
    amount: Decimal
    vat_rate: Decimal = Decimal("0")
    service_id: Optional[int] = None
    description: str
    transaction_date: date
    reference_no: Optional[str] = None


class FinanceTransactionRead(BaseModel):
    id: int
    organization_id: int
    account_id: int
    category_id: int
    service_id: Optional[int] = None
    type: str
    amount: Decimal
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    description: str
    transaction_date: date
    reference_no: Optional[str] = None
    related_payment_id: Optional[int] = None
    related_fee_id: Optional[int] = None
    created_by: int
    created_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FinanceTransactionPage(BaseModel):
    data: List[FinanceTransactionRead]
    count: int
