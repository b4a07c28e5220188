"""
Storage port used by every service.

Services never talk to a Session or a dict directly; they get a
LedgerStorage and wrap each compound mutation in ``storage.atomic()`` so the
record write and the balance write land together or not at all.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, ContextManager, List, Optional, Tuple, TypeVar

from boutique.models import (
    Balance,
    DeliveryStatus,
    Expense,
    FundMode,
    FundTransaction,
    Order,
    PaymentMode,
    PaymentStatus,
    TransactionType,
    User,
    UserRole,
    WorkStatus,
)

T = TypeVar("T")


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle.lower() in haystack.lower()


@dataclass
class OrderQuery:
    search: Optional[str] = None
    work_status: Optional[WorkStatus] = None
    delivery_status: Optional[DeliveryStatus] = None
    payment_status: Optional[PaymentStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def matches(self, order: Order) -> bool:
        if self.work_status and order.work_status != self.work_status:
            return False
        if self.delivery_status and order.delivery_status != self.delivery_status:
            return False
        if self.payment_status and order.payment_status != self.payment_status:
            return False
        if self.start_date and order.order_date < self.start_date:
            return False
        if self.end_date and order.order_date > self.end_date:
            return False
        if self.search and self.search.strip():
            term = self.search.strip()
            return any(_contains(v, term) for v in (order.order_number, order.client_name, order.phone))
        return True


@dataclass
class ExpenseQuery:
    category: Optional[str] = None
    mode: Optional[PaymentMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None

    def matches(self, expense: Expense) -> bool:
        if self.category and expense.category != self.category:
            return False
        if self.mode and expense.mode != self.mode:
            return False
        if self.start_date and expense.date < self.start_date:
            return False
        if self.end_date and expense.date > self.end_date:
            return False
        if self.search and self.search.strip():
            term = self.search.strip()
            return _contains(expense.description, term) or _contains(expense.category, term)
        return True


@dataclass
class TransactionQuery:
    type: Optional[TransactionType] = None
    mode: Optional[FundMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def matches(self, tx: FundTransaction) -> bool:
        if self.type and tx.type != self.type:
            return False
        if self.mode and tx.mode != self.mode:
            return False
        if self.start_date and tx.date < self.start_date:
            return False
        if self.end_date and tx.date > self.end_date:
            return False
        return True


class LedgerStorage(ABC):
    """Persistence for orders, expenses, fund transactions, balances and users."""

    # ---------- transaction boundary ----------

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """All writes inside the block commit together; any exception undoes them."""

    def with_transaction(self, fn: Callable[[], T]) -> T:
        with self.atomic():
            return fn()

    # ---------- generic writes ----------

    @abstractmethod
    def add(self, entity) -> None:
        ...

    @abstractmethod
    def delete(self, entity) -> None:
        ...

    # ---------- balances ----------

    @abstractmethod
    def get_balance(self) -> Optional[Balance]:
        ...

    # ---------- orders ----------

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        ...

    @abstractmethod
    def list_orders(self, query: OrderQuery, skip: int = 0, limit: Optional[int] = None) -> Tuple[List[Order], int]:
        """Newest first. Returns (page, total matching)."""

    def all_orders(self) -> List[Order]:
        rows, _ = self.list_orders(OrderQuery())
        return rows

    # ---------- expenses ----------

    @abstractmethod
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        ...

    @abstractmethod
    def list_expenses(
        self, query: ExpenseQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[Expense], int, Decimal]:
        """Newest date first. Returns (page, total matching, total amount matching)."""

    def all_expenses(self) -> List[Expense]:
        rows, _, _ = self.list_expenses(ExpenseQuery())
        return rows

    # ---------- fund transactions ----------

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[FundTransaction]:
        ...

    @abstractmethod
    def list_transactions(
        self, query: TransactionQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[FundTransaction], int]:
        ...

    def all_transactions(self) -> List[FundTransaction]:
        rows, _ = self.list_transactions(TransactionQuery())
        return rows

    # ---------- users ----------

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[User], int]:
        ...
