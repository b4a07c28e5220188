from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from boutique.core.exceptions import NotFoundError, ValidationError
from boutique.logger_config import logger
from boutique.models import Expense, PaymentMode, generate_custom_id
from boutique.models.common import utcnow
from boutique.services.ledger import LedgerEngine, delta_for
from boutique.storage import ExpenseQuery, LedgerStorage
from boutique.utils.payment_validation import AmountPolicy, validate_payment_mode


def _required_text(value: Optional[str], field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class ExpenseService:
    """Shop expenses. Each one is paid out of the account its mode routes to."""

    def __init__(self, storage: LedgerStorage, ledger: LedgerEngine, policy: Optional[AmountPolicy] = None):
        self.storage = storage
        self.ledger = ledger
        self.policy = policy or AmountPolicy()

    def get_expense(self, expense_id: str) -> Expense:
        expense = self.storage.get_expense(expense_id)
        if not expense:
            logger.warning(f"Expense {expense_id} not found")
            raise NotFoundError(f"Expense {expense_id} not found")
        return expense

    def list_expenses(
        self,
        skip: int = 0,
        limit: Optional[int] = 50,
        category: Optional[str] = None,
        mode: Optional[PaymentMode] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Expense], int, Decimal]:
        """List expenses with filters. Returns (rows, total_count, total_amount)."""
        query = ExpenseQuery(
            category=category,
            mode=mode,
            start_date=start_date,
            end_date=end_date,
            search=search,
        )
        return self.storage.list_expenses(query, skip=skip, limit=limit)

    def total_for_day(self, day: Optional[date] = None) -> Tuple[date, Decimal, int]:
        """Total expense amount for one day (today by default). Returns (date, total_amount, count)."""
        day = day or date.today()
        _, count, total_amount = self.storage.list_expenses(
            ExpenseQuery(start_date=day, end_date=day), limit=0
        )
        return day, total_amount, count

    def create_expense(
        self,
        description: str,
        category: str,
        amount: object,
        mode: PaymentMode,
        expense_date: Optional[date] = None,
    ) -> Expense:
        """Create an expense; date defaults to today. The amount leaves the mode's account."""
        value = self.policy.check_amount(amount)
        mode = validate_payment_mode(mode)
        description = _required_text(description, "Description")
        category = _required_text(category, "Category")

        with self.storage.atomic():
            expense = Expense(
                id=generate_custom_id("EXP"),
                description=description,
                category=category,
                amount=value,
                date=expense_date or date.today(),
                mode=mode,
                created_at=utcnow(),
            )
            self.storage.add(expense)
            self.ledger.record_added(expense)

        logger.info(f"Expense {expense.id} created: {value} ({mode.value}) for {category}")
        return expense

    def update_expense(
        self,
        expense_id: str,
        description: Optional[str] = None,
        category: Optional[str] = None,
        amount: Optional[object] = None,
        mode: Optional[PaymentMode] = None,
        expense_date: Optional[date] = None,
    ) -> Expense:
        expense = self.get_expense(expense_id)

        new_amount = self.policy.check_amount(amount) if amount is not None else None
        new_mode = validate_payment_mode(mode) if mode is not None else None
        new_description = _required_text(description, "Description") if description is not None else None
        new_category = _required_text(category, "Category") if category is not None else None

        with self.storage.atomic():
            old = delta_for(expense)
            if new_amount is not None:
                expense.amount = new_amount
            if new_mode is not None:
                expense.mode = new_mode
            if new_description is not None:
                expense.description = new_description
            if new_category is not None:
                expense.category = new_category
            if expense_date is not None:
                expense.date = expense_date
            self.ledger.record_changed(old, expense)

        logger.info(f"Expense {expense_id} updated")
        return expense

    def delete_expense(self, expense_id: str) -> None:
        """Delete an expense and put its amount back into the account."""
        expense = self.get_expense(expense_id)

        with self.storage.atomic():
            self.ledger.record_removed(expense)
            self.storage.delete(expense)

        logger.info(f"Expense {expense_id} deleted")
