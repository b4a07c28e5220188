"""
In-process storage for demo mode and tests.

Entities are ordinary (transient) ORM instances kept in dicts. ``atomic()``
snapshots every column value and child collection on entry and puts them
back if the block raises, which gives the same all-or-nothing behaviour as
the SQL adapter.
"""
import threading
from contextlib import contextmanager
from decimal import Decimal
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import inspect as sa_inspect

from boutique.logger_config import logger
from boutique.models import Balance, Expense, FundTransaction, Order, User, UserRole
from boutique.models.common import utcnow
from boutique.storage.base import ExpenseQuery, LedgerStorage, OrderQuery, TransactionQuery


def _columns(entity) -> Dict[str, object]:
    mapper = sa_inspect(type(entity))
    return {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}


def _restore(entity, values: Dict[str, object]) -> None:
    for key, value in values.items():
        setattr(entity, key, value)


def _page(rows: list, skip: int, limit: Optional[int]) -> list:
    return rows[skip:] if limit is None else rows[skip:skip + limit]


def _newest_first(rows: list) -> list:
    # Stable: equal timestamps keep "most recently inserted first"
    return sorted(reversed(rows), key=lambda r: r.created_at, reverse=True)


class InMemoryStorage(LedgerStorage):

    def __init__(self):
        self._tables: Dict[type, Dict[object, object]] = {
            Balance: {},
            Order: {},
            Expense: {},
            FundTransaction: {},
            User: {},
        }
        self._user_ids = count(1)
        self._depth = 0
        self._lock = threading.RLock()

    # ---------- transaction boundary ----------

    def _snapshot(self) -> dict:
        tables = {model: dict(rows) for model, rows in self._tables.items()}
        values = {}
        children = {}
        for rows in self._tables.values():
            for entity in rows.values():
                values[id(entity)] = (entity, _columns(entity))
                if isinstance(entity, Order):
                    children[id(entity)] = (list(entity.items), list(entity.payment_history))
                    for child in list(entity.items) + list(entity.payment_history):
                        values[id(child)] = (child, _columns(child))
        return {"tables": tables, "values": values, "children": children}

    def _rollback(self, snapshot: dict) -> None:
        self._tables = snapshot["tables"]
        for order_id, (items, payments) in snapshot["children"].items():
            order = snapshot["values"][order_id][0]
            order.items = list(items)
            order.payment_history = list(payments)
        for entity, values in snapshot["values"].values():
            _restore(entity, values)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            yield from self._atomic()

    def _atomic(self) -> Iterator[None]:
        if self._depth:
            # Nested block joins the outer one
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = self._snapshot()
        self._depth = 1
        try:
            yield
        except Exception:
            self._rollback(snapshot)
            logger.warning("In-memory transaction rolled back")
            raise
        finally:
            self._depth = 0

    # ---------- generic writes ----------

    def add(self, entity) -> None:
        table = self._tables[type(entity)]
        if isinstance(entity, User) and entity.id is None:
            entity.id = next(self._user_ids)
        if hasattr(entity, "created_at") and entity.created_at is None:
            entity.created_at = utcnow()
        table[entity.id] = entity

    def delete(self, entity) -> None:
        self._tables[type(entity)].pop(entity.id, None)

    # ---------- balances ----------

    def get_balance(self) -> Optional[Balance]:
        return next(iter(self._tables[Balance].values()), None)

    # ---------- orders ----------

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._tables[Order].get(order_id)

    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        return next(
            (o for o in self._tables[Order].values() if o.order_number == order_number),
            None,
        )

    def list_orders(self, query: OrderQuery, skip: int = 0, limit: Optional[int] = None) -> Tuple[List[Order], int]:
        rows = _newest_first([o for o in self._tables[Order].values() if query.matches(o)])
        return _page(rows, skip, limit), len(rows)

    # ---------- expenses ----------

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return self._tables[Expense].get(expense_id)

    def list_expenses(
        self, query: ExpenseQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[Expense], int, Decimal]:
        rows = [e for e in self._tables[Expense].values() if query.matches(e)]
        rows = sorted(_newest_first(rows), key=lambda e: e.date, reverse=True)
        total_amount = sum((Decimal(e.amount) for e in rows), Decimal("0"))
        return _page(rows, skip, limit), len(rows), total_amount

    # ---------- fund transactions ----------

    def get_transaction(self, transaction_id: str) -> Optional[FundTransaction]:
        return self._tables[FundTransaction].get(transaction_id)

    def list_transactions(
        self, query: TransactionQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[FundTransaction], int]:
        rows = [t for t in self._tables[FundTransaction].values() if query.matches(t)]
        rows = sorted(_newest_first(rows), key=lambda t: t.date, reverse=True)
        return _page(rows, skip, limit), len(rows)

    # ---------- users ----------

    def get_user(self, user_id: int) -> Optional[User]:
        return self._tables[User].get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._tables[User].values() if u.username == username), None)

    def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[User], int]:
        rows = list(self._tables[User].values())
        if role:
            rows = [u for u in rows if u.role == role]
        if search:
            rows = [u for u in rows if search.lower() in u.username.lower()]
        return _page(rows, skip, limit), len(rows)
