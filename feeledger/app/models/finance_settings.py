"""Per-organization accounting settings."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base


class FinanceSettings(Base):
    __tablename__ = "finance_settings"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, unique=True)
    currency = Column(String(3), nullable=False, default="TRY")
    default_installments = Column(Integer, nullable=False, default=1)
    payment_due_day = Column(Integer, nullable=False, default=1)
    academic_periods = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
