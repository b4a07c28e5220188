from datetime import date
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from boutique.core.dependencies import get_current_active_user, get_expense_service, require_manager
from boutique.logger_config import logger
from boutique.models import PaymentMode, User
from boutique.schemas.expense import (
    ExpenseCreate,
    ExpenseDeleteResponse,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseTotalTodayResponse,
    ExpenseUpdate,
)
from boutique.services.expense_service import ExpenseService

router = APIRouter()


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(
    data: ExpenseCreate,
    current_user: User = Depends(require_manager),
    service: ExpenseService = Depends(get_expense_service),
):
    """Create a single expense; date defaults to today if not provided."""
    expense = service.create_expense(
        description=data.description,
        category=data.category,
        amount=data.amount,
        mode=data.mode,
        expense_date=data.date,
    )
    logger.info(f"Expense {expense.id} created by {current_user.username}")
    return ExpenseResponse.model_validate(expense)


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    category: Optional[str] = Query(None),
    mode: Optional[PaymentMode] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: ExpenseService = Depends(get_expense_service),
):
    """List expenses with filters: category, mode, date range, search."""
    rows, total_count, total_amount = service.list_expenses(
        skip=skip,
        limit=limit,
        category=category,
        mode=mode,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return ExpenseListResponse(
        total=total_count,
        total_amount=total_amount,
        expenses=[ExpenseResponse.model_validate(r) for r in rows],
    )


@router.get("/total-today", response_model=ExpenseTotalTodayResponse)
def get_total_expense_today(
    current_user: User = Depends(get_current_active_user),
    service: ExpenseService = Depends(get_expense_service),
):
    today, total_amount, count = service.total_for_day()
    return ExpenseTotalTodayResponse(date=today, total_amount=total_amount, count=count)


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: str,
    current_user: User = Depends(get_current_active_user),
    service: ExpenseService = Depends(get_expense_service),
):
    return ExpenseResponse.model_validate(service.get_expense(expense_id))


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: str,
    data: ExpenseUpdate,
    current_user: User = Depends(require_manager),
    service: ExpenseService = Depends(get_expense_service),
):
    expense = service.update_expense(
        expense_id,
        description=data.description,
        category=data.category,
        amount=data.amount,
        mode=data.mode,
        expense_date=data.date,
    )
    logger.info(f"Expense {expense_id} updated by {current_user.username}")
    return ExpenseResponse.model_validate(expense)


@router.delete("/{expense_id}", response_model=ExpenseDeleteResponse)
def delete_expense(
    expense_id: str,
    current_user: User = Depends(require_manager),
    service: ExpenseService = Depends(get_expense_service),
):
    service.delete_expense(expense_id)
    logger.info(f"Expense {expense_id} deleted by {current_user.username}")
    return ExpenseDeleteResponse(message="Expense deleted successfully")
