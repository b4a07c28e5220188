"""
Reporting aggregator.

Read-only. Every call flattens the whole history (order payments, expenses,
fund transactions) into dated events and replays them from the opening
balances, so results never depend on the live Balance row and two calls on
the same data give the same answer.
"""
import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from boutique.core.exceptions import ValidationError
from boutique.logger_config import logger
from boutique.models import Account, PaymentMode, PaymentStatus, WorkStatus
from boutique.services.ledger import Delta, delta_for
from boutique.storage import LedgerStorage
from boutique.utils.money import ZERO, to_decimal

SALE = "sale"
EXPENSE = "expense"
DEPOSIT = "deposit"
WITHDRAW = "withdraw"

MODES = [mode.value for mode in PaymentMode]


@dataclass(frozen=True)
class LedgerEvent:
    date: date
    kind: str
    amount: Decimal
    mode: str
    delta: Delta
    # Set for sales only
    order_date: Optional[date] = None


def _by_mode() -> Dict[str, Decimal]:
    return {mode: ZERO for mode in MODES}


@dataclass
class MonthReport:
    year: int
    month: int
    month_name: str
    opening_bank: Decimal
    opening_cash: Decimal
    closing_bank: Decimal = ZERO
    closing_cash: Decimal = ZERO
    sales: Decimal = ZERO
    expenses: Decimal = ZERO
    deposits: Decimal = ZERO
    withdrawals: Decimal = ZERO
    sales_by_mode: Dict[str, Decimal] = field(default_factory=_by_mode)
    expenses_by_mode: Dict[str, Decimal] = field(default_factory=_by_mode)
    deposits_by_mode: Dict[str, Decimal] = field(default_factory=_by_mode)
    withdrawals_by_mode: Dict[str, Decimal] = field(default_factory=_by_mode)
    order_count: int = 0
    booked: Decimal = ZERO
    collected_same_month: Decimal = ZERO
    pending: Decimal = ZERO
    previous_month_recovery: Decimal = ZERO


@dataclass
class YearTotals:
    sales: Decimal = ZERO
    expenses: Decimal = ZERO
    deposits: Decimal = ZERO
    withdrawals: Decimal = ZERO
    booked: Decimal = ZERO


@dataclass
class YearReport:
    year: int
    opening_bank: Decimal
    opening_cash: Decimal
    closing_bank: Decimal
    closing_cash: Decimal
    months: List[MonthReport]
    totals: YearTotals


@dataclass
class AccountReconciliation:
    account: str
    expected: Decimal
    actual: Decimal
    discrepancy: Decimal


@dataclass
class Reconciliation:
    accounts: List[AccountReconciliation]

    @property
    def balanced(self) -> bool:
        return all(a.discrepancy == 0 for a in self.accounts)


@dataclass
class MonthSummary:
    year: int
    month: int
    booked_sales: Decimal
    expenses: Decimal
    order_count: int
    received_bank: Decimal
    received_cash: Decimal


@dataclass
class Dashboard:
    total_sales: Decimal
    total_expenses: Decimal
    pending_orders: int
    pending_sales_amount: Decimal
    bank_balance: Decimal
    cash_in_hand: Decimal
    month: MonthSummary


def _mode_value(mode) -> str:
    return mode.value if hasattr(mode, "value") else str(mode)


def _in_month(day: Optional[date], year: int, month: int) -> bool:
    return day is not None and day.year == year and day.month == month


class ReportService:

    def __init__(
        self,
        storage: LedgerStorage,
        opening_bank: Decimal = Decimal("0"),
        opening_cash: Decimal = Decimal("0"),
    ):
        self.storage = storage
        self.opening = {
            Account.BANK: to_decimal(opening_bank, "opening bank balance"),
            Account.CASH: to_decimal(opening_cash, "opening cash in hand"),
        }

    # ================= REPLAY ===================

    def events(self) -> List[LedgerEvent]:
        """Every money movement, oldest first. Same-day events keep their collection order."""
        events = []
        for order in self.storage.all_orders():
            for payment in order.payment_history:
                events.append(
                    LedgerEvent(
                        date=payment.date,
                        kind=SALE,
                        amount=Decimal(payment.amount),
                        mode=_mode_value(payment.mode),
                        delta=delta_for(payment),
                        order_date=order.order_date,
                    )
                )
        for expense in self.storage.all_expenses():
            events.append(
                LedgerEvent(
                    date=expense.date,
                    kind=EXPENSE,
                    amount=Decimal(expense.amount),
                    mode=_mode_value(expense.mode),
                    delta=delta_for(expense),
                )
            )
        for tx in self.storage.all_transactions():
            events.append(
                LedgerEvent(
                    date=tx.date,
                    kind=DEPOSIT if tx.sign > 0 else WITHDRAW,
                    amount=Decimal(tx.amount),
                    mode=_mode_value(tx.mode),
                    delta=delta_for(tx),
                )
            )
        events.sort(key=lambda e: e.date)
        return events

    def replay(self, events: Iterable[LedgerEvent], until: Optional[date] = None) -> Dict[Account, Decimal]:
        """Opening balances plus every event dated on or before ``until`` (all of them if None)."""
        balances = dict(self.opening)
        for event in events:
            if until is not None and event.date > until:
                break
            balances[event.delta.account] += event.delta.amount
        return balances

    # ================= MONTHLY REPORT ===================

    def monthly_report(self, year: int) -> YearReport:
        if not 1 <= year <= 9999:
            raise ValidationError(f"Invalid year: {year}")

        events = self.events()
        running = self.replay((e for e in events if e.date.year < year))
        opening_bank, opening_cash = running[Account.BANK], running[Account.CASH]

        booked: Dict[int, Decimal] = defaultdict(Decimal)
        order_count: Dict[int, int] = defaultdict(int)
        for order in self.storage.all_orders():
            if order.order_date.year == year:
                booked[order.order_date.month] += Decimal(order.total_amount)
                order_count[order.order_date.month] += 1

        months = []
        for month in range(1, 13):
            report = MonthReport(
                year=year,
                month=month,
                month_name=calendar.month_name[month],
                opening_bank=running[Account.BANK],
                opening_cash=running[Account.CASH],
            )
            for event in events:
                if not _in_month(event.date, year, month):
                    continue
                running[event.delta.account] += event.delta.amount

                if event.kind == SALE:
                    report.sales += event.amount
                    report.sales_by_mode[event.mode] += event.amount
                    if _in_month(event.order_date, year, month):
                        report.collected_same_month += event.amount
                    elif event.order_date < date(year, month, 1):
                        report.previous_month_recovery += event.amount
                elif event.kind == EXPENSE:
                    report.expenses += event.amount
                    report.expenses_by_mode[event.mode] += event.amount
                elif event.kind == DEPOSIT:
                    report.deposits += event.amount
                    report.deposits_by_mode[event.mode] += event.amount
                else:
                    report.withdrawals += event.amount
                    report.withdrawals_by_mode[event.mode] += event.amount

            report.closing_bank = running[Account.BANK]
            report.closing_cash = running[Account.CASH]
            report.booked = booked.get(month, ZERO)
            report.order_count = order_count[month]
            report.pending = max(report.booked - report.collected_same_month, ZERO)
            months.append(report)

        totals = YearTotals(
            sales=sum((m.sales for m in months), ZERO),
            expenses=sum((m.expenses for m in months), ZERO),
            deposits=sum((m.deposits for m in months), ZERO),
            withdrawals=sum((m.withdrawals for m in months), ZERO),
            booked=sum((m.booked for m in months), ZERO),
        )
        logger.debug(f"Monthly report for {year} built from {len(events)} events")
        return YearReport(
            year=year,
            opening_bank=opening_bank,
            opening_cash=opening_cash,
            closing_bank=running[Account.BANK],
            closing_cash=running[Account.CASH],
            months=months,
            totals=totals,
        )

    def closing_balance(self, year: int, month: int, account: Account) -> Decimal:
        """Replayed balance of one account at the end of the given month."""
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        return self.replay(self.events(), until=last_day)[account]

    # ================= RECONCILIATION ===================

    def live_balances(self) -> Dict[Account, Decimal]:
        balance = self.storage.get_balance()
        if balance is None:
            return dict(self.opening)
        return {
            Account.BANK: Decimal(balance.bank_balance),
            Account.CASH: Decimal(balance.cash_in_hand),
        }

    def reconcile(self) -> Reconciliation:
        """Compare the replayed history with the live balances."""
        expected = self.replay(self.events())
        actual = self.live_balances()
        accounts = [
            AccountReconciliation(
                account=account.value,
                expected=expected[account],
                actual=actual[account],
                discrepancy=actual[account] - expected[account],
            )
            for account in (Account.BANK, Account.CASH)
        ]
        result = Reconciliation(accounts=accounts)
        if not result.balanced:
            logger.warning(
                "Balance discrepancy: "
                + ", ".join(f"{a.account} {a.discrepancy:+}" for a in accounts if a.discrepancy)
            )
        return result

    # ================= DASHBOARD ===================

    def dashboard(self, today: Optional[date] = None) -> Dashboard:
        today = today or date.today()
        orders = self.storage.all_orders()
        expenses = self.storage.all_expenses()
        payments = [(order, p) for order in orders for p in order.payment_history]

        month_orders = [o for o in orders if _in_month(o.order_date, today.year, today.month)]
        month_payments = [p for _, p in payments if _in_month(p.date, today.year, today.month)]

        summary = MonthSummary(
            year=today.year,
            month=today.month,
            booked_sales=sum((Decimal(o.total_amount) for o in month_orders), ZERO),
            expenses=sum(
                (Decimal(e.amount) for e in expenses if _in_month(e.date, today.year, today.month)),
                ZERO,
            ),
            order_count=len(month_orders),
            received_bank=sum(
                (Decimal(p.amount) for p in month_payments if p.mode != PaymentMode.CASH),
                ZERO,
            ),
            received_cash=sum(
                (Decimal(p.amount) for p in month_payments if p.mode == PaymentMode.CASH),
                ZERO,
            ),
        )

        live = self.live_balances()
        return Dashboard(
            total_sales=sum((Decimal(p.amount) for _, p in payments), ZERO),
            total_expenses=sum((Decimal(e.amount) for e in expenses), ZERO),
            pending_orders=sum(
                1 for o in orders if o.work_status in (WorkStatus.PENDING, WorkStatus.IN_PROGRESS)
            ),
            pending_sales_amount=sum(
                (
                    Decimal(o.balance_amount)
                    for o in orders
                    if o.payment_status in (PaymentStatus.UNPAID, PaymentStatus.PARTIAL)
                ),
                ZERO,
            ),
            bank_balance=live[Account.BANK],
            cash_in_hand=live[Account.CASH],
            month=summary,
        )
