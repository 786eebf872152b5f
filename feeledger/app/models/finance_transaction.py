"""Ledger entries moving money into or out of an account."""

from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base

TRANSACTION_TYPES = ("income", "expense")


class FinanceTransaction(Base):
    __tablename__ = "finance_transactions"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("finance_accounts.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("finance_categories.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("finance_services.id"), nullable=True, index=True)
    type = Column(String(16), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    vat_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    vat_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    description = Column(Text, nullable=False, default="")
    transaction_date = Column(Date, nullable=False)
    reference_no = Column(String(128), nullable=True)
    related_payment_id = Column(Integer, ForeignKey("fee_payments.id"), nullable=True, unique=True)
    related_fee_id = Column(Integer, ForeignKey("student_fees.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    account = relationship("FinanceAccount", back_populates="transactions")
    category = relationship("FinanceCategory")
    payment = relationship("FeePayment", back_populates="transaction")
