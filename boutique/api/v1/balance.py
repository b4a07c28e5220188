from fastapi import APIRouter, Depends

from boutique.core.dependencies import get_balance_service, get_current_active_user, require_manager
from boutique.logger_config import logger
from boutique.models import User
from boutique.schemas.balance import BalanceResponse, BalanceUpdate
from boutique.services.balance_service import BalanceService

router = APIRouter()


@router.get("", response_model=BalanceResponse)
def get_balances(
    current_user: User = Depends(get_current_active_user),
    service: BalanceService = Depends(get_balance_service),
):
    return BalanceResponse.model_validate(service.get())


@router.patch("", response_model=BalanceResponse)
def set_balances(
    data: BalanceUpdate,
    current_user: User = Depends(require_manager),
    service: BalanceService = Depends(get_balance_service),
):
    """
    Overwrite bank balance and/or cash in hand with absolute values.
    Nothing is booked for the difference; use /reports/adjustments for that.
    """
    balance = service.set(bank_balance=data.bank_balance, cash_in_hand=data.cash_in_hand)
    logger.info(
        f"Balances overwritten by {current_user.username}: "
        f"bank={balance.bank_balance}, cash={balance.cash_in_hand}"
    )
    return BalanceResponse.model_validate(balance)
