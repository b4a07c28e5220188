import enum
from decimal import Decimal
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from boutique.core.database import Base
from boutique.models.common import PaymentMode, generate_custom_id


class WorkStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    READY = "Ready"
    CANCELLED = "Cancelled"


class DeliveryStatus(str, enum.Enum):
    PENDING = "Pending"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    RETURNED = "Returned"


class PaymentStatus(str, enum.Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class Order(Base):
    """
    A client order. total/advance/balance and payment_status are stored,
    but only ever written together with items or payment_history.
    """
    __tablename__ = "orders"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("ORD"))
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    client_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    advance_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    balance_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    work_status = Column(Enum(WorkStatus), nullable=False, default=WorkStatus.PENDING)
    delivery_status = Column(Enum(DeliveryStatus), nullable=False, default=DeliveryStatus.PENDING)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)

    order_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        collection_class=ordering_list("position"),
    )
    payment_history = relationship(
        "OrderPayment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderPayment.position",
        collection_class=ordering_list("position"),
    )

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.payment_history), Decimal("0"))

    @property
    def amount_due(self) -> Decimal:
        """Outstanding amount, never negative (overpayment reads as nothing due)."""
        return max(Decimal(self.balance_amount), Decimal("0"))

    def get_payment(self, payment_id: str):
        return next((p for p in self.payment_history if p.id == payment_id), None)

    def __repr__(self):
        return f"<Order(order_number='{self.order_number}', balance={self.balance_amount})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("ITM"))
    order_id = Column(String(20), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    order = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity - Decimal(self.discount or 0)


class OrderPayment(Base):
    """One entry of an order's payment history."""
    __tablename__ = "order_payments"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("PAY"))
    order_id = Column(String(20), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    mode = Column(Enum(PaymentMode), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="payment_history")
