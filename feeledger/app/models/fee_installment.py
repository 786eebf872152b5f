"""One scheduled slice of a student fee."""

from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base

INSTALLMENT_STATUSES = ("pending", "partial", "paid", "overdue", "cancelled")


class FeeInstallment(Base):
    __tablename__ = "fee_installments"

    id = Column(Integer, primary_key=True, index=True)
    fee_id = Column(Integer, ForeignKey("student_fees.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    # Written only by services.ledger
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    due_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    paid_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    fee = relationship("StudentFee", back_populates="installments")
    payments = relationship("FeePayment", back_populates="installment")

    __mapper_args__ = {"version_id_col": version}

    @property
    def remaining_amount(self) -> Decimal:
        return Decimal(self.amount) - Decimal(self.paid_amount or 0)
