from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from boutique.models import FundMode, TransactionType

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal
    description: str = Field(..., min_length=1)
    mode: FundMode
    date: Optional[DateType] = None


class TransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = Field(None, min_length=1)
    mode: Optional[FundMode] = None
    date: Optional[DateType] = None


class TransactionResponse(BaseModel):
    id: str
    type: TransactionType
    amount: Decimal
    description: str
    date: DateType
    mode: FundMode
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    total: int
    transactions: List[TransactionResponse]


class TransactionDeleteResponse(BaseModel):
    message: str
