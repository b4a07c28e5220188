import calendar
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from boutique.core.exceptions import NotFoundError, ValidationError
from boutique.logger_config import logger
from boutique.models import FundMode, FundTransaction, TransactionType, generate_custom_id
from boutique.models.common import utcnow
from boutique.services.ledger import LedgerEngine, delta_for
from boutique.storage import LedgerStorage, TransactionQuery
from boutique.utils.money import to_decimal
from boutique.utils.payment_validation import AmountPolicy, validate_fund_mode


def _transaction_type(value) -> TransactionType:
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError(f"Invalid transaction type: {value!r}. Expected Deposit or Withdraw")


def month_end(year: int, month: int) -> date:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}")
    return date(year, month, calendar.monthrange(year, month)[1])


class TransactionService:
    """Deposits into and withdrawals from the bank or the cash drawer."""

    def __init__(self, storage: LedgerStorage, ledger: LedgerEngine, policy: Optional[AmountPolicy] = None):
        self.storage = storage
        self.ledger = ledger
        self.policy = policy or AmountPolicy()

    def get_transaction(self, transaction_id: str) -> FundTransaction:
        tx = self.storage.get_transaction(transaction_id)
        if not tx:
            logger.warning(f"Transaction {transaction_id} not found")
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return tx

    def list_transactions(
        self,
        skip: int = 0,
        limit: Optional[int] = 50,
        type: Optional[TransactionType] = None,
        mode: Optional[FundMode] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[FundTransaction], int]:
        query = TransactionQuery(type=type, mode=mode, start_date=start_date, end_date=end_date)
        return self.storage.list_transactions(query, skip=skip, limit=limit)

    def create_transaction(
        self,
        type: TransactionType,
        amount: object,
        description: str,
        mode: FundMode,
        tx_date: Optional[date] = None,
    ) -> FundTransaction:
        tx_type = _transaction_type(type)
        value = self.policy.check_amount(amount)
        fund_mode = validate_fund_mode(mode)
        if not description or not description.strip():
            raise ValidationError("Description is required")

        with self.storage.atomic():
            tx = FundTransaction(
                id=generate_custom_id("TXN"),
                type=tx_type,
                amount=value,
                description=description.strip(),
                date=tx_date or date.today(),
                mode=fund_mode,
                created_at=utcnow(),
            )
            self.storage.add(tx)
            self.ledger.record_added(tx)

        logger.info(f"{tx_type.value} {tx.id} of {value} ({fund_mode.value}) recorded")
        return tx

    def update_transaction(
        self,
        transaction_id: str,
        type: Optional[TransactionType] = None,
        amount: Optional[object] = None,
        description: Optional[str] = None,
        mode: Optional[FundMode] = None,
        tx_date: Optional[date] = None,
    ) -> FundTransaction:
        """Edit a transaction: its old effect is reversed and the new one applied."""
        tx = self.get_transaction(transaction_id)

        new_type = _transaction_type(type) if type is not None else None
        new_amount = self.policy.check_amount(amount) if amount is not None else None
        new_mode = validate_fund_mode(mode) if mode is not None else None
        if description is not None and not description.strip():
            raise ValidationError("Description is required")

        with self.storage.atomic():
            old = delta_for(tx)
            if new_type is not None:
                tx.type = new_type
            if new_amount is not None:
                tx.amount = new_amount
            if new_mode is not None:
                tx.mode = new_mode
            if description is not None:
                tx.description = description.strip()
            if tx_date is not None:
                tx.date = tx_date
            self.ledger.record_changed(old, tx)

        logger.info(f"Transaction {transaction_id} updated")
        return tx

    def delete_transaction(self, transaction_id: str) -> None:
        tx = self.get_transaction(transaction_id)

        with self.storage.atomic():
            self.ledger.record_removed(tx)
            self.storage.delete(tx)

        logger.info(f"Transaction {transaction_id} deleted")

    def adjust_closing_balance(
        self,
        year: int,
        month: int,
        mode: FundMode,
        desired_closing: object,
        current_closing: Decimal,
    ) -> Optional[FundTransaction]:
        """
        Bring a month's closing balance for one account to ``desired_closing``
        by booking the difference as a Deposit or Withdraw on the last day of
        that month.

        Returns:
            The adjustment transaction, or None when nothing needed to change
        """
        fund_mode = validate_fund_mode(mode)
        target = to_decimal(desired_closing, "desired_closing")
        diff = target - to_decimal(current_closing, "current_closing")
        adjustment_date = month_end(year, month)

        if diff == 0:
            logger.info(f"No {fund_mode.value} adjustment needed for {year}-{month:02d}")
            return None

        return self.create_transaction(
            type=TransactionType.DEPOSIT if diff > 0 else TransactionType.WITHDRAW,
            amount=abs(diff),
            description=f"Balance Adjustment ({calendar.month_name[month]})",
            mode=fund_mode,
            tx_date=adjustment_date,
        )
