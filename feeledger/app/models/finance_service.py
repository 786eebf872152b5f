"""Billable catalog items (tuition, fees, purchased services)."""

from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base


class FinanceService(Base):
    __tablename__ = "finance_services"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(16), nullable=False)
    category_id = Column(Integer, ForeignKey("finance_categories.id"), nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    vat_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    is_active = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    category = relationship("FinanceCategory")
