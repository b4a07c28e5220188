from datetime import date
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from boutique.core.dependencies import (
    get_current_active_user,
    get_report_service,
    get_transaction_service,
    require_admin,
    require_manager,
)
from boutique.logger_config import logger
from boutique.models import User, account_for_mode
from boutique.schemas.report import (
    AdjustmentRequest,
    AdjustmentResponse,
    DashboardResponse,
    ReconciliationResponse,
    YearReportResponse,
)
from boutique.schemas.transaction import TransactionResponse
from boutique.services.report_service import ReportService
from boutique.services.transaction_service import TransactionService
from boutique.utils.money import to_decimal

router = APIRouter()


@router.get("/monthly", response_model=YearReportResponse)
def monthly_report(
    year: Optional[int] = Query(None, ge=1, le=9999, description="Defaults to the current year"),
    current_user: User = Depends(require_manager),
    service: ReportService = Depends(get_report_service),
):
    """Opening, movements and closing of both accounts for every month of the year."""
    report = service.monthly_report(year or date.today().year)
    return YearReportResponse.model_validate(report)


@router.post("/adjustments", response_model=AdjustmentResponse, status_code=status.HTTP_201_CREATED)
def adjust_closing_balance(
    data: AdjustmentRequest,
    current_user: User = Depends(require_admin),
    reports: ReportService = Depends(get_report_service),
    transactions: TransactionService = Depends(get_transaction_service),
):
    """
    Make a month's closing balance match a counted figure by booking the
    difference as a Deposit or Withdraw on the month's last day.
    """
    current = reports.closing_balance(data.year, data.month, account_for_mode(data.mode))
    desired = to_decimal(data.closing_balance, "closing_balance")
    tx = transactions.adjust_closing_balance(data.year, data.month, data.mode, desired, current)

    logger.info(
        f"{data.mode.value} closing for {data.year}-{data.month:02d} adjusted "
        f"from {current} to {desired} by {current_user.username}"
    )
    return AdjustmentResponse(
        current_closing=current,
        desired_closing=desired,
        difference=desired - current,
        transaction=TransactionResponse.model_validate(tx) if tx else None,
    )


@router.get("/reconciliation", response_model=ReconciliationResponse)
def reconciliation(
    current_user: User = Depends(require_manager),
    service: ReportService = Depends(get_report_service),
):
    """Replayed history versus the live balances."""
    return ReconciliationResponse.model_validate(service.reconcile())


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    today: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: ReportService = Depends(get_report_service),
):
    return DashboardResponse.model_validate(service.dashboard(today))
