from decimal import Decimal
from typing import Optional

from boutique.logger_config import logger
from boutique.models import BALANCE_ID, Balance
from boutique.models.common import utcnow
from boutique.storage import LedgerStorage
from boutique.utils.money import to_decimal


class BalanceService:
    """
    The persisted pair of running balances (bank, cash in hand).

    Pure get/set: callers work out the new values and hand them over.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        opening_bank: Decimal = Decimal("0"),
        opening_cash: Decimal = Decimal("0"),
    ):
        self.storage = storage
        self.opening_bank = to_decimal(opening_bank, "opening bank balance")
        self.opening_cash = to_decimal(opening_cash, "opening cash in hand")

    def get(self) -> Balance:
        """Return the balance row, creating it with the opening balances on first read."""
        balance = self.storage.get_balance()
        if balance is None:
            with self.storage.atomic():
                balance = Balance(
                    id=BALANCE_ID,
                    bank_balance=self.opening_bank,
                    cash_in_hand=self.opening_cash,
                    updated_at=utcnow(),
                )
                self.storage.add(balance)
            logger.info("Balance row initialised")
        return balance

    def set(self, bank_balance: Optional[object] = None, cash_in_hand: Optional[object] = None) -> Balance:
        """Overwrite the given field(s) and stamp updated_at."""
        new_bank = to_decimal(bank_balance, "bank_balance") if bank_balance is not None else None
        new_cash = to_decimal(cash_in_hand, "cash_in_hand") if cash_in_hand is not None else None

        with self.storage.atomic():
            balance = self.get()
            if new_bank is not None:
                balance.bank_balance = new_bank
            if new_cash is not None:
                balance.cash_in_hand = new_cash
            balance.updated_at = utcnow()

        logger.debug(f"Balances set: bank={balance.bank_balance}, cash={balance.cash_in_hand}")
        return balance
