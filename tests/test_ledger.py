"""
Balance store, delta routing and the all-or-nothing transaction boundary.
"""

from datetime import date
from decimal import Decimal

import pytest

from boutique.core.exceptions import NotFoundError, ValidationError
from boutique.models import (
    Account,
    Expense,
    FundMode,
    FundTransaction,
    Order,
    OrderPayment,
    PaymentMode,
    TransactionType,
)
from boutique.services.balance_service import BalanceService
from boutique.services.ledger import Delta, delta_for
from boutique.storage import InMemoryStorage

from conftest import current_balances, item


class TestBalanceStore:
    """Plain get/set over the singleton row"""

    def test_first_read_creates_zero_balances(self, balances):
        assert current_balances(balances) == (Decimal("0"), Decimal("0"))

    def test_first_read_uses_opening_balances(self):
        service = BalanceService(InMemoryStorage(), opening_bank="25000", opening_cash="5000")
        row = service.get()
        assert row.bank_balance == Decimal("25000")
        assert row.cash_in_hand == Decimal("5000")

    def test_set_overwrites_only_given_field(self, balances):
        balances.set(bank_balance="1500.50")
        balances.set(cash_in_hand="200")
        assert current_balances(balances) == (Decimal("1500.50"), Decimal("200"))

    def test_set_stamps_updated_at(self, balances):
        row = balances.set(bank_balance="1")
        assert row.updated_at is not None

    @pytest.mark.parametrize("bad", ["abc", "", "NaN", "Infinity"])
    def test_malformed_amount_rejected(self, balances, bad):
        with pytest.raises(ValidationError):
            balances.set(bank_balance=bad)
        assert current_balances(balances) == (Decimal("0"), Decimal("0"))


class TestDeltaRouting:
    """Which account a record touches, and with which sign"""

    @pytest.mark.parametrize(
        "mode, account",
        [
            (PaymentMode.CASH, Account.CASH),
            (PaymentMode.BANK, Account.BANK),
            (PaymentMode.UPI, Account.BANK),
        ],
    )
    def test_payment_credits_routed_account(self, mode, account):
        payment = OrderPayment(amount=Decimal("100"), mode=mode, date=date(2025, 1, 1))
        assert delta_for(payment) == Delta(account, Decimal("100"))

    def test_expense_debits(self):
        expense = Expense(amount=Decimal("500"), mode=PaymentMode.UPI, date=date(2025, 1, 1))
        assert delta_for(expense) == Delta(Account.BANK, Decimal("-500"))

    def test_deposit_and_withdraw(self):
        deposit = FundTransaction(type=TransactionType.DEPOSIT, amount=Decimal("300"), mode=FundMode.CASH)
        withdraw = FundTransaction(type=TransactionType.WITHDRAW, amount=Decimal("300"), mode=FundMode.BANK)
        assert delta_for(deposit) == Delta(Account.CASH, Decimal("300"))
        assert delta_for(withdraw) == Delta(Account.BANK, Decimal("-300"))

    def test_non_money_record_rejected(self):
        with pytest.raises(TypeError):
            delta_for(object())

    def test_order_itself_is_not_a_money_record(self):
        with pytest.raises(TypeError):
            delta_for(Order(total_amount=Decimal("4000")))


class TestLedgerEngine:

    def test_apply_aggregates_per_account(self, ledger, balances):
        ledger.apply(
            Delta(Account.CASH, Decimal("100")),
            Delta(Account.CASH, Decimal("-40")),
            Delta(Account.BANK, Decimal("10")),
        )
        assert current_balances(balances) == (Decimal("10"), Decimal("60"))

    def test_change_moves_between_accounts(self, ledger, balances):
        payment = OrderPayment(amount=Decimal("700"), mode=PaymentMode.CASH, date=date(2025, 1, 1))
        ledger.record_added(payment)
        old = delta_for(payment)
        payment.mode = PaymentMode.UPI
        payment.amount = Decimal("650")
        ledger.record_changed(old, payment)
        assert current_balances(balances) == (Decimal("650"), Decimal("0"))

    def test_added_then_removed_is_neutral(self, ledger, balances):
        expense = Expense(amount=Decimal("250"), mode=PaymentMode.BANK, date=date(2025, 1, 1))
        ledger.record_added(expense)
        ledger.record_removed(expense)
        assert current_balances(balances) == (Decimal("0"), Decimal("0"))


class TestAtomicity:
    """A failure anywhere in a compound write leaves no trace"""

    def test_failed_block_rolls_back_record_and_balance(self, storage, orders, balances):
        order = orders.create_order("Alice Styles", [item(price="4000")], initial_payment="2000")

        with pytest.raises(RuntimeError):
            with storage.atomic():
                orders.record_payment(order.id, "1000", PaymentMode.BANK)
                raise RuntimeError("boom")

        order = orders.get_order(order.id)
        assert len(order.payment_history) == 1
        assert order.balance_amount == Decimal("2000")
        assert current_balances(balances) == (Decimal("0"), Decimal("2000"))

    def test_with_transaction_returns_value(self, storage):
        assert storage.with_transaction(lambda: 42) == 42

    def test_missing_payment_changes_nothing(self, orders, balances):
        order = orders.create_order("Alice Styles", [item(price="4000")], initial_payment="2000")
        with pytest.raises(NotFoundError):
            orders.delete_payment(order.id, "PAY-MISSING")
        assert current_balances(balances) == (Decimal("0"), Decimal("2000"))

    def test_rejected_amount_changes_nothing(self, orders, balances):
        order = orders.create_order("Alice Styles", [item(price="4000")])
        with pytest.raises(ValidationError):
            orders.record_payment(order.id, "-10", PaymentMode.CASH)
        assert orders.get_order(order.id).payment_history == []
        assert current_balances(balances) == (Decimal("0"), Decimal("0"))


class TestReplayMatchesLiveBalances:
    """Opening balances plus every recorded delta equals the live store"""

    def test_mixed_history(self, orders, expenses, transactions, reports, balances):
        a = orders.create_order("Alice", [item(price="4000")], initial_payment="2000", order_date=date(2025, 3, 1))
        b = orders.create_order("Sarah", [item(price="800", quantity=2, discount="100")], order_date=date(2025, 3, 2))
        orders.record_payment(a.id, "1000", PaymentMode.UPI, payment_date=date(2025, 3, 5))
        pay = orders.record_payment(b.id, "1500", PaymentMode.CASH, payment_date=date(2025, 3, 6)).payment_history[0]
        orders.edit_payment(b.id, pay.id, amount="1200", mode=PaymentMode.BANK)
        rent = expenses.create_expense("Shop Rent", "Rent", "15000", PaymentMode.BANK, date(2025, 3, 10))
        expenses.create_expense("Thread", "Materials", "250", PaymentMode.CASH, date(2025, 3, 11))
        expenses.update_expense(rent.id, amount="14000")
        tx = transactions.create_transaction(TransactionType.DEPOSIT, "5000", "Owner capital", FundMode.BANK, date(2025, 3, 12))
        transactions.update_transaction(tx.id, type=TransactionType.WITHDRAW)
        orders.delete_order(a.id)

        reconciliation = reports.reconcile()
        assert reconciliation.balanced
        bank, cash = current_balances(balances)
        expected = {r.account: r.expected for r in reconciliation.accounts}
        assert expected[Account.BANK.value] == bank
        assert expected[Account.CASH.value] == cash
