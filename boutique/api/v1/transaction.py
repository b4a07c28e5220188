from datetime import date
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from boutique.core.dependencies import get_current_active_user, get_transaction_service, require_manager
from boutique.logger_config import logger
from boutique.models import FundMode, TransactionType, User
from boutique.schemas.transaction import (
    TransactionCreate,
    TransactionDeleteResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from boutique.services.transaction_service import TransactionService

router = APIRouter()


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    data: TransactionCreate,
    current_user: User = Depends(require_manager),
    service: TransactionService = Depends(get_transaction_service),
):
    tx = service.create_transaction(
        type=data.type,
        amount=data.amount,
        description=data.description,
        mode=data.mode,
        tx_date=data.date,
    )
    logger.info(f"{tx.type.value} {tx.id} recorded by {current_user.username}")
    return TransactionResponse.model_validate(tx)


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    type: Optional[TransactionType] = Query(None),
    mode: Optional[FundMode] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    rows, total = service.list_transactions(
        skip=skip,
        limit=limit,
        type=type,
        mode=mode,
        start_date=start_date,
        end_date=end_date,
    )
    return TransactionListResponse(
        total=total,
        transactions=[TransactionResponse.model_validate(r) for r in rows],
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    current_user: User = Depends(get_current_active_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return TransactionResponse.model_validate(service.get_transaction(transaction_id))


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    data: TransactionUpdate,
    current_user: User = Depends(require_manager),
    service: TransactionService = Depends(get_transaction_service),
):
    """Edit a transaction; the balances follow the change."""
    tx = service.update_transaction(
        transaction_id,
        type=data.type,
        amount=data.amount,
        description=data.description,
        mode=data.mode,
        tx_date=data.date,
    )
    logger.info(f"Transaction {transaction_id} updated by {current_user.username}")
    return TransactionResponse.model_validate(tx)


@router.delete("/{transaction_id}", response_model=TransactionDeleteResponse)
def delete_transaction(
    transaction_id: str,
    current_user: User = Depends(require_manager),
    service: TransactionService = Depends(get_transaction_service),
):
    service.delete_transaction(transaction_id)
    logger.info(f"Transaction {transaction_id} deleted by {current_user.username}")
    return TransactionDeleteResponse(message="Transaction deleted successfully")
