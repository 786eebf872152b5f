"""Payment receipt; rows are never updated after insert."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base

PAYMENT_METHODS = ("cash", "bank_transfer", "credit_card", "other")


class FeePayment(Base):
    __tablename__ = "fee_payments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    installment_id = Column(Integer, ForeignKey("fee_installments.id"), nullable=True, index=True)
    account_id = Column(Integer, ForeignKey("finance_accounts.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(32), nullable=False)
    reference_no = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    student = relationship("Student", back_populates="payments")
    installment = relationship("FeeInstallment", back_populates="payments")
    account = relationship("FinanceAccount", back_populates="payments")
    transaction = relationship("FinanceTransaction", back_populates="payment", uselist=False)
