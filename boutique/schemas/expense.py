from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from boutique.models import PaymentMode

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class ExpenseCreate(BaseModel):
    """Single expense create - date defaults to today on server if not provided."""
    date: Optional[DateType] = None
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=50)
    amount: Decimal
    mode: PaymentMode


class ExpenseUpdate(BaseModel):
    date: Optional[DateType] = None
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    amount: Optional[Decimal] = None
    mode: Optional[PaymentMode] = None


class ExpenseResponse(BaseModel):
    id: str
    date: DateType
    description: str
    category: str
    amount: Decimal
    mode: PaymentMode
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    total: int
    total_amount: Decimal
    expenses: List[ExpenseResponse]


class ExpenseTotalTodayResponse(BaseModel):
    """Total expense amount for today."""
    date: DateType
    total_amount: Decimal
    count: int


class ExpenseDeleteResponse(BaseModel):
    message: str
