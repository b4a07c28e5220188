from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from boutique.core.exceptions import ConflictError
from boutique.logger_config import logger
from boutique.models import BALANCE_ID, Balance, Expense, FundTransaction, Order, User, UserRole
from boutique.storage.base import ExpenseQuery, LedgerStorage, OrderQuery, TransactionQuery


class SqlAlchemyStorage(LedgerStorage):
    """LedgerStorage over one SQLAlchemy session; one commit per outermost atomic block."""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    # ---------- transaction boundary ----------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error, transaction rolled back: {str(e.orig)}")
            raise ConflictError("Record conflicts with an existing one")
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth = 0

    # ---------- generic writes ----------

    def add(self, entity) -> None:
        # Flush so later lookups in the same unit of work see the row
        self.db.add(entity)
        self.db.flush()

    def delete(self, entity) -> None:
        self.db.delete(entity)

    # ---------- balances ----------

    def get_balance(self) -> Optional[Balance]:
        return self.db.get(Balance, BALANCE_ID)

    # ---------- orders ----------

    def _orders(self):
        return self.db.query(Order).options(
            selectinload(Order.items),
            selectinload(Order.payment_history),
        )

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._orders().filter(Order.id == order_id).first()

    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        return self._orders().filter(Order.order_number == order_number).first()

    def list_orders(self, query: OrderQuery, skip: int = 0, limit: Optional[int] = None) -> Tuple[List[Order], int]:
        q = self._orders()

        if query.work_status:
            q = q.filter(Order.work_status == query.work_status)
        if query.delivery_status:
            q = q.filter(Order.delivery_status == query.delivery_status)
        if query.payment_status:
            q = q.filter(Order.payment_status == query.payment_status)
        if query.start_date:
            q = q.filter(Order.order_date >= query.start_date)
        if query.end_date:
            q = q.filter(Order.order_date <= query.end_date)
        if query.search and query.search.strip():
            term = f"%{query.search.strip()}%"
            q = q.filter(
                or_(
                    Order.order_number.ilike(term),
                    Order.client_name.ilike(term),
                    Order.phone.ilike(term),
                )
            )

        total = q.count()
        q = q.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return q.all(), total

    # ---------- expenses ----------

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return self.db.get(Expense, expense_id)

    def list_expenses(
        self, query: ExpenseQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[Expense], int, Decimal]:
        q = self.db.query(Expense)

        if query.category:
            q = q.filter(Expense.category == query.category)
        if query.mode:
            q = q.filter(Expense.mode == query.mode)
        if query.start_date:
            q = q.filter(Expense.date >= query.start_date)
        if query.end_date:
            q = q.filter(Expense.date <= query.end_date)
        if query.search and query.search.strip():
            term = f"%{query.search.strip()}%"
            q = q.filter(or_(Expense.description.ilike(term), Expense.category.ilike(term)))

        total_count = q.count()
        total_row = q.with_entities(func.coalesce(func.sum(Expense.amount), 0)).first()
        total_amount = Decimal(str(total_row[0])) if total_row else Decimal("0")

        q = q.order_by(Expense.date.desc(), Expense.created_at.desc()).offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return q.all(), total_count, total_amount

    # ---------- fund transactions ----------

    def get_transaction(self, transaction_id: str) -> Optional[FundTransaction]:
        return self.db.get(FundTransaction, transaction_id)

    def list_transactions(
        self, query: TransactionQuery, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[FundTransaction], int]:
        q = self.db.query(FundTransaction)

        if query.type:
            q = q.filter(FundTransaction.type == query.type)
        if query.mode:
            q = q.filter(FundTransaction.mode == query.mode)
        if query.start_date:
            q = q.filter(FundTransaction.date >= query.start_date)
        if query.end_date:
            q = q.filter(FundTransaction.date <= query.end_date)

        total = q.count()
        q = q.order_by(FundTransaction.date.desc(), FundTransaction.created_at.desc()).offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return q.all(), total

    # ---------- users ----------

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[User], int]:
        q = self.db.query(User)
        if role:
            q = q.filter(User.role == role)
        if search:
            q = q.filter(User.username.ilike(f"%{search}%"))

        total = q.count()
        q = q.order_by(User.id).offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return q.all(), total

