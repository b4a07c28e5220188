"""
Expenses and fund transactions move the balances the opposite or the same
way as sales; edits reverse the old effect first.
"""

from datetime import date
from decimal import Decimal

import pytest

from boutique.core.exceptions import NotFoundError, ValidationError
from boutique.models import FundMode, PaymentMode, TransactionType
from boutique.services.transaction_service import month_end

from conftest import current_balances


class TestExpenses:

    def test_create_debits_account(self, expenses, balances):
        expense = expenses.create_expense("Thread Purchase", "Materials", "2500", PaymentMode.CASH, date(2025, 3, 1))
        assert expense.id.startswith("EXP-")
        assert expense.amount == Decimal("2500")
        assert current_balances(balances) == (Decimal("0"), Decimal("-2500"))

    def test_delete_credits_back(self, expenses, balances):
        balances.set(bank_balance="1000")
        expense = expenses.create_expense("Shop Rent", "Rent", "500", PaymentMode.BANK)
        assert current_balances(balances) == (Decimal("500"), Decimal("0"))

        expenses.delete_expense(expense.id)

        assert current_balances(balances) == (Decimal("1000"), Decimal("0"))
        with pytest.raises(NotFoundError):
            expenses.get_expense(expense.id)

    def test_edit_amount_and_mode(self, expenses, balances):
        expense = expenses.create_expense("Electricity Bill", "Utilities", "800", PaymentMode.CASH)
        expenses.update_expense(expense.id, amount="650", mode=PaymentMode.UPI)
        assert current_balances(balances) == (Decimal("-650"), Decimal("0"))

    def test_edit_description_only_moves_nothing(self, expenses, balances):
        expense = expenses.create_expense("Electricity", "Utilities", "800", PaymentMode.CASH)
        expense = expenses.update_expense(expense.id, description="Electricity Bill (March)")
        assert expense.description == "Electricity Bill (March)"
        assert current_balances(balances) == (Decimal("0"), Decimal("-800"))

    @pytest.mark.parametrize("amount", ["0", "-1", "twelve"])
    def test_bad_amount(self, expenses, balances, amount):
        with pytest.raises(ValidationError):
            expenses.create_expense("Thread", "Materials", amount, PaymentMode.CASH)
        assert current_balances(balances) == (Decimal("0"), Decimal("0"))

    def test_category_required(self, expenses):
        with pytest.raises(ValidationError):
            expenses.create_expense("Thread", " ", "10", PaymentMode.CASH)

    def test_list_and_day_total(self, expenses):
        expenses.create_expense("Thread", "Materials", "100", PaymentMode.CASH, date(2025, 3, 1))
        expenses.create_expense("Lace", "Materials", "150", PaymentMode.BANK, date(2025, 3, 1))
        expenses.create_expense("Rent", "Rent", "5000", PaymentMode.BANK, date(2025, 3, 2))

        rows, total, total_amount = expenses.list_expenses(category="Materials")
        assert total == 2
        assert total_amount == Decimal("250")

        rows, total, _ = expenses.list_expenses(mode=PaymentMode.BANK)
        assert [e.date for e in rows] == [date(2025, 3, 2), date(2025, 3, 1)]

        day, amount, count = expenses.total_for_day(date(2025, 3, 1))
        assert (day, amount, count) == (date(2025, 3, 1), Decimal("250"), 2)


class TestTransactions:

    def test_deposit_and_withdraw(self, transactions, balances):
        transactions.create_transaction(TransactionType.DEPOSIT, "3000", "Banked cash", FundMode.BANK)
        transactions.create_transaction(TransactionType.WITHDRAW, "3000", "Banked cash", FundMode.CASH)
        assert current_balances(balances) == (Decimal("3000"), Decimal("-3000"))

    def test_edit_reverses_then_applies(self, transactions, balances):
        tx = transactions.create_transaction(TransactionType.DEPOSIT, "1000", "Capital", FundMode.CASH)
        transactions.update_transaction(tx.id, type=TransactionType.WITHDRAW, amount="400", mode=FundMode.BANK)
        assert current_balances(balances) == (Decimal("-400"), Decimal("0"))

    def test_delete_reverses(self, transactions, balances):
        tx = transactions.create_transaction(TransactionType.WITHDRAW, "700", "Owner draw", FundMode.BANK)
        transactions.delete_transaction(tx.id)
        assert current_balances(balances) == (Decimal("0"), Decimal("0"))

    def test_upi_not_a_fund_mode(self, transactions):
        with pytest.raises(ValidationError):
            transactions.create_transaction(TransactionType.DEPOSIT, "100", "x", PaymentMode.UPI)

    def test_payment_mode_bank_accepted(self, transactions, balances):
        transactions.create_transaction(TransactionType.DEPOSIT, "100", "x", PaymentMode.BANK)
        assert current_balances(balances) == (Decimal("100"), Decimal("0"))

    def test_unknown_type(self, transactions):
        with pytest.raises(ValidationError):
            transactions.create_transaction("Transfer", "100", "x", FundMode.CASH)

    def test_unknown_transaction(self, transactions):
        with pytest.raises(NotFoundError):
            transactions.delete_transaction("TXN-NOPE")

    def test_list_filters(self, transactions):
        transactions.create_transaction(TransactionType.DEPOSIT, "100", "a", FundMode.CASH, date(2025, 1, 1))
        transactions.create_transaction(TransactionType.WITHDRAW, "50", "b", FundMode.CASH, date(2025, 1, 2))
        rows, total = transactions.list_transactions(type=TransactionType.WITHDRAW)
        assert total == 1 and rows[0].description == "b"


class TestClosingAdjustment:

    def test_month_end(self):
        assert month_end(2024, 2) == date(2024, 2, 29)
        assert month_end(2025, 3) == date(2025, 3, 31)
        with pytest.raises(ValidationError):
            month_end(2025, 13)

    def test_raise_closing_books_deposit(self, transactions, balances):
        tx = transactions.adjust_closing_balance(2025, 3, FundMode.BANK, "12000", Decimal("10000"))
        assert tx.type == TransactionType.DEPOSIT
        assert tx.amount == Decimal("2000")
        assert tx.mode == FundMode.BANK
        assert tx.date == date(2025, 3, 31)
        assert tx.description == "Balance Adjustment (March)"
        assert current_balances(balances) == (Decimal("2000"), Decimal("0"))

    def test_lower_closing_books_withdraw(self, transactions):
        tx = transactions.adjust_closing_balance(2025, 2, FundMode.CASH, "300", Decimal("500"))
        assert tx.type == TransactionType.WITHDRAW
        assert tx.amount == Decimal("200")
        assert tx.date == date(2025, 2, 28)

    def test_no_difference_books_nothing(self, transactions):
        assert transactions.adjust_closing_balance(2025, 3, FundMode.BANK, "10000", Decimal("10000")) is None
        _, total = transactions.list_transactions()
        assert total == 0
