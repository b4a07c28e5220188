from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from boutique.models import FundMode
from boutique.schemas.transaction import TransactionResponse


class MonthReportResponse(BaseModel):
    year: int
    month: int
    month_name: str
    opening_bank: Decimal
    opening_cash: Decimal
    closing_bank: Decimal
    closing_cash: Decimal
    sales: Decimal
    expenses: Decimal
    deposits: Decimal
    withdrawals: Decimal
    sales_by_mode: Dict[str, Decimal]
    expenses_by_mode: Dict[str, Decimal]
    deposits_by_mode: Dict[str, Decimal]
    withdrawals_by_mode: Dict[str, Decimal]
    order_count: int
    booked: Decimal
    collected_same_month: Decimal
    pending: Decimal
    previous_month_recovery: Decimal

    class Config:
        from_attributes = True


class YearTotalsResponse(BaseModel):
    sales: Decimal
    expenses: Decimal
    deposits: Decimal
    withdrawals: Decimal
    booked: Decimal

    class Config:
        from_attributes = True


class YearReportResponse(BaseModel):
    year: int
    opening_bank: Decimal
    opening_cash: Decimal
    closing_bank: Decimal
    closing_cash: Decimal
    months: List[MonthReportResponse]
    totals: YearTotalsResponse

    class Config:
        from_attributes = True


class AdjustmentRequest(BaseModel):
    """Set the closing balance of one account for one month."""
    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    mode: FundMode
    closing_balance: Decimal


class AdjustmentResponse(BaseModel):
    current_closing: Decimal
    desired_closing: Decimal
    difference: Decimal
    transaction: Optional[TransactionResponse] = None


class AccountReconciliationResponse(BaseModel):
    account: str
    expected: Decimal
    actual: Decimal
    discrepancy: Decimal

    class Config:
        from_attributes = True


class ReconciliationResponse(BaseModel):
    balanced: bool
    accounts: List[AccountReconciliationResponse]

    class Config:
        from_attributes = True


class MonthSummaryResponse(BaseModel):
    year: int
    month: int
    booked_sales: Decimal
    expenses: Decimal
    order_count: int
    received_bank: Decimal
    received_cash: Decimal

    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    total_sales: Decimal
    total_expenses: Decimal
    pending_orders: int
    pending_sales_amount: Decimal
    bank_balance: Decimal
    cash_in_hand: Decimal
    month: MonthSummaryResponse

    class Config:
        from_attributes = True
