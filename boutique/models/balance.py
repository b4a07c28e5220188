from decimal import Decimal
from sqlalchemy import Column, DateTime, Numeric, String
from sqlalchemy.sql import func

from boutique.core.database import Base

BALANCE_ID = "singleton"


class Balance(Base):
    """The two running account balances. Exactly one row."""
    __tablename__ = "balances"

    id = Column(String(20), primary_key=True, default=BALANCE_ID)
    bank_balance = Column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    cash_in_hand = Column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Balance(bank={self.bank_balance}, cash={self.cash_in_hand})>"
