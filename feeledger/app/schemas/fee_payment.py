"""Fee payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

PaymentMethod = Literal["cash", "bank_transfer", "credit_card", "other"]


class FeePaymentCreate(BaseModel):
    student_id: int
    installment_id: Optional[int] = None
    account_id: int
    amount: Decimal
    payment_method: PaymentMethod
    reference_no: Optional[str] = None
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None


class FeePaymentRead(BaseModel):
    id: int
    organization_id: int
    student_id: int
    installment_id: Optional[int] = None
    account_id: int
    amount: Decimal
    payment_method: str
    reference_no: Optional[str] = None
    notes: Optional[str] = None
    payment_date: datetime
    created_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeePaymentPage(BaseModel):
    data: List[FeePaymentRead]
    count: int


class FeeReceiptRead(BaseModel):
    receipt_number: str
    payment: FeePaymentRead
    organization_name: str
    student_name: str
    operator_name: str
    service_name: str
    academic_period: Optional[str] = None
    total_debt: Decimal
    total_paid: Decimal
    remaining_debt: Decimal

    model_config = ConfigDict(from_attributes=True)
