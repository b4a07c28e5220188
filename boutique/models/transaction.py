import enum
from sqlalchemy import Column, Date, DateTime, Enum, Numeric, String, Text
from sqlalchemy.sql import func

from boutique.core.database import Base
from boutique.models.common import generate_custom_id


class TransactionType(str, enum.Enum):
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"


class FundMode(str, enum.Enum):
    CASH = "Cash"
    BANK = "Bank"


class FundTransaction(Base):
    """Deposit into / withdrawal from one of the two accounts."""
    __tablename__ = "transactions"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("TXN"))
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    mode = Column(Enum(FundMode), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def sign(self) -> int:
        return 1 if self.type == TransactionType.DEPOSIT else -1
