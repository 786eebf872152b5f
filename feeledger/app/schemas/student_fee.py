"""Student fee and installment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

DiscountType = Literal["percentage", "fixed"]


class StudentFeeCreate(BaseModel):
    student_id: int
    total_amount: Decimal
    installment_count: int = 1
    academic_period: str
    discount_amount: Decimal = Decimal("0")
    discount_type: Optional[DiscountType] = None
    discount_reason: Optional[str] = None
    service_id: Optional[int] = None
    vat_rate: Optional[Decimal] = None
    payment_due_day: Optional[int] = None
    start_date: Optional[date] = None
    notes: Optional[str] = None


class BulkFeeAssign(BaseModel):
    student_ids: List[int]
    total_amount: Decimal
    installment_count: int = 1
    academic_period: str
    service_id: Optional[int] = None
    payment_due_day: Optional[int] = None
    start_date: Optional[date] = None


class BulkFeeAssignResult(BaseModel):
    assigned_count: int


class FeeInstallmentRead(BaseModel):
    id: int
    fee_id: int
    installment_number: int
    amount: Decimal
    paid_amount: Decimal
    due_date: date
    status: str
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StudentFeeRead(BaseModel):
    id: int
    organization_id: int
    student_id: int
    service_id: Optional[int] = None
    total_amount: Decimal
    discount_amount: Decimal
    discount_type: Optional[str] = None
    discount_reason: Optional[str] = None
    vat_rate: Decimal
    vat_amount: Decimal
    net_amount: Decimal
    installment_count: int
    academic_period: str
    status: str
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentFeeDetail(StudentFeeRead):
    installments: List[FeeInstallmentRead] = []


class FeeCancelRequest(BaseModel):
    refund: bool = False
    refund_account_id: Optional[int] = None
    reason: Optional[str] = None


class FeeCancelRead(BaseModel):
    fee: StudentFeeDetail
    total_paid: Decimal
    refund_transaction_id: Optional[int] = None
    refund_account_id: Optional[int] = None


class OverdueSweepRead(BaseModel):
    updated_count: int
