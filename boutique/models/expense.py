from sqlalchemy import Column, Date, DateTime, Enum, Numeric, String, Text
from sqlalchemy.sql import func

from boutique.core.database import Base
from boutique.models.common import PaymentMode, generate_custom_id


class Expense(Base):
    """Shop expense; paid out of the account its mode routes to."""
    __tablename__ = "expenses"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("EXP"))
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    mode = Column(Enum(PaymentMode), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
