"""
Orders and their payment sub-ledger.

An order keeps ``total_amount``, ``advance_amount``, ``balance_amount`` and
``payment_status`` as stored columns. They are rewritten in the same
transaction as every change to ``items`` or ``payment_history``:

    total_amount    = sum(price * quantity - discount) over items
    advance_amount  = sum(payment.amount) over payment_history
    balance_amount  = total_amount - advance_amount
    payment_status  = Paid if balance <= 0, Partial if anything was paid, else Unpaid

Payments also move money, so every payment write goes through the ledger
engine inside the same ``storage.atomic()`` block.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from boutique.core.exceptions import ConflictError, NotFoundError, ValidationError
from boutique.logger_config import logger
from boutique.models import (
    DeliveryStatus,
    Order,
    OrderItem,
    OrderPayment,
    PaymentMode,
    PaymentStatus,
    WorkStatus,
    generate_custom_id,
)
from boutique.models.common import utcnow
from boutique.services.ledger import LedgerEngine, delta_for
from boutique.storage import LedgerStorage, OrderQuery
from boutique.utils.money import ZERO, to_decimal
from boutique.utils.payment_validation import AmountPolicy, validate_payment_mode

# Header fields that must always hold a value; the rest may be cleared with None
REQUIRED_HEADER_FIELDS = (
    "order_number",
    "client_name",
    "work_status",
    "delivery_status",
    "order_date",
)
HEADER_FIELDS = REQUIRED_HEADER_FIELDS + ("phone", "due_date", "notes")

# Passed for an optional field that should be left as it is
UNCHANGED = object()


def derive_payment_status(balance: Decimal, total_paid: Decimal) -> PaymentStatus:
    # Overpayment (negative balance) still reads as Paid
    if balance <= 0:
        return PaymentStatus.PAID
    if total_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def _field(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def build_items(items: Iterable[Any]) -> List[OrderItem]:
    """Turn request items (dicts or schema objects) into OrderItem rows."""
    rows = []
    for raw in items:
        description = (_field(raw, "description") or "").strip()
        if not description:
            raise ValidationError("Item description is required")

        quantity = _field(raw, "quantity", 1)
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Quantity for '{description}' must be a positive whole number")

        price = to_decimal(_field(raw, "price"), "price")
        discount = to_decimal(_field(raw, "discount") or 0, "discount")
        if price < 0 or discount < 0:
            raise ValidationError(f"Price and discount for '{description}' cannot be negative")
        if discount > price * quantity:
            raise ValidationError(f"Discount for '{description}' exceeds the line amount")

        rows.append(
            OrderItem(
                id=generate_custom_id("ITM"),
                description=description,
                quantity=quantity,
                price=price,
                discount=discount,
            )
        )
    if not rows:
        raise ValidationError("An order needs at least one item")
    return rows


def items_total(items: Iterable[OrderItem]) -> Decimal:
    return sum((item.line_total for item in items), ZERO)


class OrderService:
    """Create, edit and settle client orders."""

    def __init__(self, storage: LedgerStorage, ledger: LedgerEngine, policy: Optional[AmountPolicy] = None):
        self.storage = storage
        self.ledger = ledger
        self.policy = policy or AmountPolicy()

    # ================= QUERIES ===================

    def get_order(self, order_id: str) -> Order:
        order = self.storage.get_order(order_id)
        if not order:
            logger.warning(f"Order {order_id} not found")
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def list_orders(
        self,
        skip: int = 0,
        limit: Optional[int] = 50,
        search: Optional[str] = None,
        work_status: Optional[WorkStatus] = None,
        delivery_status: Optional[DeliveryStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Order], int]:
        query = OrderQuery(
            search=search,
            work_status=work_status,
            delivery_status=delivery_status,
            payment_status=payment_status,
            start_date=start_date,
            end_date=end_date,
        )
        return self.storage.list_orders(query, skip=skip, limit=limit)

    def worklists(self, today: Optional[date] = None, recent: int = 10) -> Dict[str, List[Order]]:
        """
        Order lists for the shop floor:
        pending works, due today, overdue, delivered and the most recent orders.
        """
        today = today or date.today()
        orders = self.storage.all_orders()

        def open_delivery(o: Order) -> bool:
            return o.delivery_status != DeliveryStatus.DELIVERED

        return {
            "pending": [
                o for o in orders
                if o.work_status not in (WorkStatus.READY, WorkStatus.CANCELLED) and open_delivery(o)
            ],
            "due_today": [o for o in orders if o.due_date == today and open_delivery(o)],
            "overdue": [
                o for o in orders
                if o.due_date and o.due_date < today and open_delivery(o)
                and o.work_status != WorkStatus.CANCELLED
            ],
            "delivered": [o for o in orders if o.delivery_status == DeliveryStatus.DELIVERED],
            "recent": orders[:recent],
        }

    # ================= ORDER LIFECYCLE ===================

    def create_order(
        self,
        client_name: str,
        items: Iterable[Any],
        order_date: Optional[date] = None,
        order_number: Optional[str] = None,
        phone: Optional[str] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        initial_payment: Optional[object] = None,
        initial_payment_mode: PaymentMode = PaymentMode.CASH,
    ) -> Order:
        """
        Create an order. A non-zero ``initial_payment`` is recorded as the
        advance, dated on the order date, and credited to its account.
        """
        if not client_name or not client_name.strip():
            raise ValidationError("Client name is required")

        rows = build_items(items)
        order_date = order_date or date.today()
        order_number = (order_number or "").strip() or generate_custom_id("ORD", length=6)
        if self.storage.get_order_by_number(order_number):
            raise ConflictError(f"Order number {order_number} already exists")

        advance = None
        if initial_payment is not None and to_decimal(initial_payment, "initial_payment") != 0:
            advance = self.policy.check_payment(initial_payment, items_total(rows))
        mode = validate_payment_mode(initial_payment_mode, "initial_payment_mode")

        with self.storage.atomic():
            order = Order(
                id=generate_custom_id("ORD"),
                order_number=order_number,
                client_name=client_name.strip(),
                phone=phone,
                work_status=WorkStatus.PENDING,
                delivery_status=DeliveryStatus.PENDING,
                order_date=order_date,
                due_date=due_date,
                notes=notes,
                created_at=utcnow(),
            )
            order.items = rows
            order.total_amount = items_total(rows)

            if advance is not None:
                order.payment_history.append(
                    OrderPayment(
                        id=generate_custom_id("PAY"),
                        amount=advance,
                        date=order_date,
                        mode=mode,
                        note="Advance Payment",
                        created_at=utcnow(),
                    )
                )
            self._refresh_totals(order)
            self.storage.add(order)

            for payment in order.payment_history:
                self.ledger.record_added(payment)

        logger.info(f"Order {order.order_number} created, total {order.total_amount}, advance {order.advance_amount}")
        return order

    def update_order(self, order_id: str, changes: Dict[str, Any]) -> Order:
        """
        Edit header fields; an ``items`` entry re-prices the order as well.
        Only keys present in ``changes`` are touched, so None clears phone,
        due_date or notes.
        """
        order = self.get_order(order_id)

        cleared = [f for f in REQUIRED_HEADER_FIELDS + ("items",) if f in changes and changes[f] is None]
        if cleared:
            raise ValidationError(f"Cannot clear required field(s): {', '.join(cleared)}")

        new_number = changes.get("order_number")
        if new_number and new_number != order.order_number:
            if self.storage.get_order_by_number(new_number):
                raise ConflictError(f"Order number {new_number} already exists")

        if "client_name" in changes and not (changes["client_name"] or "").strip():
            raise ValidationError("Client name is required")
        new_items = build_items(changes["items"]) if "items" in changes else None

        with self.storage.atomic():
            for field in HEADER_FIELDS:
                if field in changes:
                    setattr(order, field, changes[field])
            if new_items is not None:
                self._replace_items(order, new_items)

        logger.info(f"Order {order.order_number} updated: {sorted(changes)}")
        return order

    def edit_order_items(self, order_id: str, items: Iterable[Any]) -> Order:
        """Replace the item list and re-derive total, balance and status. No cash moves."""
        order = self.get_order(order_id)
        rows = build_items(items)

        with self.storage.atomic():
            self._replace_items(order, rows)

        logger.info(f"Order {order.order_number} items edited, new total {order.total_amount}")
        return order

    def cancel_order(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        with self.storage.atomic():
            order.work_status = WorkStatus.CANCELLED
        logger.info(f"Order {order.order_number} cancelled")
        return order

    def delete_order(self, order_id: str) -> None:
        """Delete an order and take back every payment it brought in."""
        order = self.get_order(order_id)
        order_number, payments = order.order_number, list(order.payment_history)

        with self.storage.atomic():
            for payment in payments:
                self.ledger.record_removed(payment)
            self.storage.delete(order)

        logger.info(f"Order {order_number} deleted with {len(payments)} payment(s) reversed")

    # ================= PAYMENTS ===================

    def record_payment(
        self,
        order_id: str,
        amount: object,
        mode: PaymentMode,
        payment_date: Optional[date] = None,
        note: Optional[str] = None,
    ) -> Order:
        order = self.get_order(order_id)
        value = self.policy.check_payment(amount, order.amount_due)
        mode = validate_payment_mode(mode)

        with self.storage.atomic():
            payment = OrderPayment(
                id=generate_custom_id("PAY"),
                amount=value,
                date=payment_date or date.today(),
                mode=mode,
                note=note,
                created_at=utcnow(),
            )
            order.payment_history.append(payment)
            self._refresh_totals(order)
            self.ledger.record_added(payment)

        logger.info(f"Payment {value} ({mode.value}) recorded on order {order.order_number}")
        return order

    def edit_payment(
        self,
        order_id: str,
        payment_id: str,
        amount: Optional[object] = None,
        mode: Optional[PaymentMode] = None,
        payment_date: Optional[date] = None,
        note: Any = UNCHANGED,
    ) -> Order:
        """Amount, mode and date left as None stay as they are; note=None clears the note."""
        order = self.get_order(order_id)
        payment = self._get_payment(order, payment_id)

        new_amount = Decimal(payment.amount)
        if amount is not None:
            due_without_this = order.total_amount - (order.total_paid - Decimal(payment.amount))
            new_amount = self.policy.check_payment(amount, max(due_without_this, ZERO))
        new_mode = validate_payment_mode(mode) if mode is not None else payment.mode

        with self.storage.atomic():
            old = delta_for(payment)
            payment.amount = new_amount
            payment.mode = new_mode
            if payment_date is not None:
                payment.date = payment_date
            if note is not UNCHANGED:
                payment.note = note
            self._refresh_totals(order)
            self.ledger.record_changed(old, payment)

        logger.info(f"Payment {payment_id} on order {order.order_number} edited")
        return order

    def delete_payment(self, order_id: str, payment_id: str) -> Order:
        order = self.get_order(order_id)
        payment = self._get_payment(order, payment_id)

        with self.storage.atomic():
            self.ledger.record_removed(payment)
            order.payment_history.remove(payment)
            self._refresh_totals(order)

        logger.info(f"Payment {payment_id} removed from order {order.order_number}")
        return order

    # ================= HELPERS ===================

    def _get_payment(self, order: Order, payment_id: str) -> OrderPayment:
        payment = order.get_payment(payment_id)
        if not payment:
            logger.warning(f"Payment {payment_id} not found on order {order.id}")
            raise NotFoundError(f"Payment {payment_id} not found on order {order.order_number}")
        return payment

    @staticmethod
    def _refresh_totals(order: Order) -> None:
        total_paid = order.total_paid
        order.advance_amount = total_paid
        order.balance_amount = Decimal(order.total_amount) - total_paid
        order.payment_status = derive_payment_status(order.balance_amount, total_paid)

    @staticmethod
    def _replace_items(order: Order, rows: List[OrderItem]) -> None:
        new_total = items_total(rows)
        # What was collected so far, read off the stored aggregates
        total_paid = Decimal(order.total_amount) - Decimal(order.balance_amount)
        order.items = rows
        order.total_amount = new_total
        order.balance_amount = new_total - total_paid
        order.payment_status = derive_payment_status(order.balance_amount, total_paid)
