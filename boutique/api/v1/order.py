from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from boutique.core.dependencies import get_current_active_user, get_order_service, require_admin, require_manager
from boutique.core.exceptions import BoutiqueError
from boutique.logger_config import logger
from boutique.models import DeliveryStatus, PaymentStatus, User, WorkStatus
from boutique.schemas.order import (
    OrderCreate,
    OrderDeleteResponse,
    OrderItemsUpdate,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
    PaymentCreate,
    PaymentUpdate,
    WorklistResponse,
)
from boutique.services.order_service import UNCHANGED, OrderService

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """Create an order; a non-zero initial_payment is booked as the advance."""
    try:
        order = service.create_order(
            client_name=data.client_name,
            items=data.items,
            order_date=data.order_date,
            order_number=data.order_number,
            phone=data.phone,
            due_date=data.due_date,
            notes=data.notes,
            initial_payment=data.initial_payment,
            initial_payment_mode=data.initial_payment_mode,
        )
        logger.info(f"Order {order.order_number} created by {current_user.username}")
        return OrderResponse.model_validate(order)
    except BoutiqueError:
        raise
    except Exception:
        logger.exception("Error creating order")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order",
        )


@router.get("", response_model=OrderListResponse)
def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    search: Optional[str] = Query(None, description="Order number, client name or phone"),
    work_status: Optional[WorkStatus] = Query(None),
    delivery_status: Optional[DeliveryStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    rows, total = service.list_orders(
        skip=skip,
        limit=limit,
        search=search,
        work_status=work_status,
        delivery_status=delivery_status,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )
    return OrderListResponse(total=total, orders=[OrderResponse.model_validate(o) for o in rows])


@router.get("/worklists", response_model=WorklistResponse)
def get_worklists(
    today: Optional[date] = Query(None, description="Defaults to the server date"),
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """Pending works, due today, overdue, delivered and recent orders."""
    lists = service.worklists(today=today)
    return WorklistResponse(
        **{name: [OrderResponse.model_validate(o) for o in orders] for name, orders in lists.items()}
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.model_validate(service.get_order(order_id))


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    data: OrderUpdate,
    current_user: User = Depends(require_manager),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_order(order_id, data.model_dump(exclude_unset=True))
    logger.info(f"Order {order.order_number} updated by {current_user.username}")
    return OrderResponse.model_validate(order)


@router.put("/{order_id}/items", response_model=OrderResponse)
def replace_order_items(
    order_id: str,
    data: OrderItemsUpdate,
    current_user: User = Depends(require_manager),
    service: OrderService = Depends(get_order_service),
):
    """Replace the item list; total, balance and payment status follow. No money moves."""
    order = service.edit_order_items(order_id, data.items)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    current_user: User = Depends(require_manager),
    service: OrderService = Depends(get_order_service),
):
    order = service.cancel_order(order_id)
    logger.info(f"Order {order.order_number} cancelled by {current_user.username}")
    return OrderResponse.model_validate(order)


@router.delete("/{order_id}", response_model=OrderDeleteResponse)
def delete_order(
    order_id: str,
    current_user: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Delete an order. Every payment it received is taken back out of the balances."""
    service.delete_order(order_id)
    logger.info(f"Order {order_id} deleted by {current_user.username}")
    return OrderDeleteResponse(message="Order deleted successfully")


# ================= PAYMENTS ===================

@router.post("/{order_id}/payments", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    order_id: str,
    data: PaymentCreate,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    try:
        order = service.record_payment(
            order_id,
            amount=data.amount,
            mode=data.mode,
            payment_date=data.date,
            note=data.note,
        )
        logger.info(f"Payment on order {order.order_number} recorded by {current_user.username}")
        return OrderResponse.model_validate(order)
    except BoutiqueError:
        raise
    except Exception:
        logger.exception("Error recording payment")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record payment",
        )


@router.patch("/{order_id}/payments/{payment_id}", response_model=OrderResponse)
def edit_payment(
    order_id: str,
    payment_id: str,
    data: PaymentUpdate,
    current_user: User = Depends(require_manager),
    service: OrderService = Depends(get_order_service),
):
    fields = data.model_dump(exclude_unset=True)
    order = service.edit_payment(
        order_id,
        payment_id,
        amount=fields.get("amount"),
        mode=fields.get("mode"),
        payment_date=fields.get("date"),
        note=fields.get("note", UNCHANGED),
    )
    return OrderResponse.model_validate(order)


@router.delete("/{order_id}/payments/{payment_id}", response_model=OrderResponse)
def delete_payment(
    order_id: str,
    payment_id: str,
    current_user: User = Depends(require_manager),
    service: OrderService = Depends(get_order_service),
):
    order = service.delete_payment(order_id, payment_id)
    logger.info(f"Payment {payment_id} on order {order.order_number} deleted by {current_user.username}")
    return OrderResponse.model_validate(order)
