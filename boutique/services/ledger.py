"""
Ledger mutation engine.

Every payment, expense and fund transaction contributes one signed delta to
one of the two running balances:

    order payment   +amount   (Cash -> cash in hand, Bank/UPI -> bank)
    expense         -amount
    Deposit         +amount
    Withdraw        -amount

Creating a record applies its delta, deleting it applies the reverse, and
editing it reverses the old delta before applying the new one. Balances are
never recomputed from history here; the reporting replay does that.
"""
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from boutique.logger_config import logger
from boutique.models import Account, Expense, FundTransaction, OrderPayment, account_for_mode
from boutique.services.balance_service import BalanceService


@dataclass(frozen=True)
class Delta:
    account: Account
    amount: Decimal

    def reversed(self) -> "Delta":
        return Delta(self.account, -self.amount)


def delta_for(record) -> Delta:
    """Signed contribution of a single record to the running balances."""
    if isinstance(record, OrderPayment):
        return Delta(account_for_mode(record.mode), Decimal(record.amount))
    if isinstance(record, Expense):
        return Delta(account_for_mode(record.mode), -Decimal(record.amount))
    if isinstance(record, FundTransaction):
        return Delta(account_for_mode(record.mode), Decimal(record.amount) * record.sign)
    raise TypeError(f"{type(record).__name__} does not move money")


class LedgerEngine:

    def __init__(self, balances: BalanceService):
        self.balances = balances

    def apply(self, *deltas: Delta) -> None:
        """Add the deltas to the live balances with a single write."""
        totals: Dict[Account, Decimal] = defaultdict(Decimal)
        for delta in deltas:
            totals[delta.account] += delta.amount

        changes = {account: amount for account, amount in totals.items() if amount != 0}
        if not changes:
            return

        current = self.balances.get()
        new_values = {
            account.value: Decimal(getattr(current, account.value)) + amount
            for account, amount in changes.items()
        }
        self.balances.set(**new_values)
        logger.info(
            "Ledger delta applied: "
            + ", ".join(f"{account.value} {amount:+}" for account, amount in changes.items())
        )

    def record_added(self, record) -> None:
        self.apply(delta_for(record))

    def record_removed(self, record) -> None:
        self.apply(delta_for(record).reversed())

    def record_changed(self, old: Delta, record) -> None:
        """``old`` is the delta captured before the record was edited."""
        self.apply(old.reversed(), delta_for(record))
