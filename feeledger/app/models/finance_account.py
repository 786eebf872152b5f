"""Cash, bank and POS accounts holding organization money."""

from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from feeledger.app.core.time import utc_now
from feeledger.app.db.base_class import Base

ACCOUNT_TYPES = ("cash", "bank", "pos")


class FinanceAccount(Base):
    __tablename__ = "finance_accounts"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    account_type = Column(String(16), nullable=False, default="cash")
    # Written only by services.ledger
    balance = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    currency = Column(String(3), nullable=False, default="TRY")
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    transactions = relationship("FinanceTransaction", back_populates="account")
    payments = relationship("FeePayment", back_populates="account")

    __mapper_args__ = {"version_id_col": version}
