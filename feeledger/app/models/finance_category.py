"""Income and expense categories."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base


class FinanceCategory(Base):
    __tablename__ = "finance_categories"
    __table_args__ = (UniqueConstraint("organization_id", "name", "type", name="uq_finance_category_org_name_type"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(16), nullable=False)
    parent_id = Column(Integer, ForeignKey("finance_categories.id"), nullable=True)
    icon = Column(String(64), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_system = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
