"""Student fee obligation split into installments."""

from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base

FEE_STATUSES = ("active", "completed", "cancelled")
DISCOUNT_TYPES = ("percentage", "fixed")


class StudentFee(Base):
    __tablename__ = "student_fees"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("finance_services.id"), nullable=True, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount_type = Column(String(16), nullable=True)
    discount_reason = Column(Text, nullable=True)
    vat_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    vat_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    net_amount = Column(Numeric(12, 2), nullable=False)
    installment_count = Column(Integer, nullable=False, default=1)
    academic_period = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False, default="active")
    notes = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    student = relationship("Student", back_populates="fees")
    service = relationship("FinanceService")
    installments = relationship(
        "FeeInstallment",
        back_populates="fee",
        order_by="FeeInstallment.installment_number",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}
