from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from boutique.models import DeliveryStatus, PaymentMode, PaymentStatus, WorkStatus

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class OrderItemIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, ge=1)
    price: Decimal
    discount: Decimal = Decimal("0")


class OrderCreate(BaseModel):
    """New order. order_number is generated when left out; order_date defaults to today."""
    order_number: Optional[str] = Field(None, max_length=50)
    client_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    order_date: Optional[DateType] = None
    due_date: Optional[DateType] = None
    notes: Optional[str] = None
    items: List[OrderItemIn] = Field(..., min_length=1)
    initial_payment: Optional[Decimal] = None
    initial_payment_mode: PaymentMode = PaymentMode.CASH


class OrderUpdate(BaseModel):
    order_number: Optional[str] = Field(None, min_length=1, max_length=50)
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    work_status: Optional[WorkStatus] = None
    delivery_status: Optional[DeliveryStatus] = None
    order_date: Optional[DateType] = None
    due_date: Optional[DateType] = None
    notes: Optional[str] = None
    items: Optional[List[OrderItemIn]] = Field(None, min_length=1)


class OrderItemsUpdate(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)


class PaymentCreate(BaseModel):
    amount: Decimal
    mode: PaymentMode
    date: Optional[DateType] = None  # today when left out
    note: Optional[str] = None


class PaymentUpdate(BaseModel):
    amount: Optional[Decimal] = None
    mode: Optional[PaymentMode] = None
    date: Optional[DateType] = None
    note: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: str
    description: str
    quantity: int
    price: Decimal
    discount: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: str
    amount: Decimal
    date: DateType
    mode: PaymentMode
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    order_number: str
    client_name: str
    phone: Optional[str] = None
    total_amount: Decimal
    advance_amount: Decimal
    balance_amount: Decimal
    amount_due: Decimal
    work_status: WorkStatus
    delivery_status: DeliveryStatus
    payment_status: PaymentStatus
    order_date: DateType
    due_date: Optional[DateType] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemResponse]
    payment_history: List[PaymentResponse]

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    total: int
    orders: List[OrderResponse]


class WorklistResponse(BaseModel):
    """Order lists for the staff dashboard."""
    pending: List[OrderResponse]
    due_today: List[OrderResponse]
    overdue: List[OrderResponse]
    delivered: List[OrderResponse]
    recent: List[OrderResponse]


class OrderDeleteResponse(BaseModel):
    message: str
