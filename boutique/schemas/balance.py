from decimal import Decimal
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class BalanceResponse(BaseModel):
    bank_balance: Decimal
    cash_in_hand: Decimal
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BalanceUpdate(BaseModel):
    """Absolute overwrite of either balance."""
    bank_balance: Optional[Decimal] = None
    cash_in_hand: Optional[Decimal] = None
