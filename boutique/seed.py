"""
Demo data for the boutique.

Everything goes through the services, so the balances end up consistent
with the generated history. Used by the memory backend when DEMO_DATA is
set, or against the configured database with:

    python -m boutique.seed
"""
import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from faker import Faker

from boutique.core.config import settings
from boutique.logger_config import logger
from boutique.models import DeliveryStatus, FundMode, PaymentMode, TransactionType, UserRole, WorkStatus
from boutique.services.balance_service import BalanceService
from boutique.services.expense_service import ExpenseService
from boutique.services.ledger import LedgerEngine
from boutique.services.order_service import OrderService
from boutique.services.transaction_service import TransactionService
from boutique.services.user_service import count_users, create_user
from boutique.storage import LedgerStorage
from boutique.utils.payment_validation import AmountPolicy

DEMO_PASSWORD = "demo1234"

GARMENTS = [
    ("Silk Saree Blouse", 1500),
    ("Embroidery Work", 2500),
    ("Cotton Kurti", 800),
    ("Lehenga Stitching", 4500),
    ("Salwar Suit", 1200),
    ("Alteration", 300),
    ("Designer Gown", 6000),
    ("Fall and Pico", 150),
]

EXPENSE_CATEGORIES = {
    "Materials": ("Thread Purchase", "Lining Fabric", "Buttons and Hooks", "Lace Roll"),
    "Rent": ("Shop Rent",),
    "Utilities": ("Electricity Bill", "Internet Bill"),
    "Salary": ("Tailor Wages", "Helper Wages"),
    "Maintenance": ("Machine Service", "Shop Cleaning"),
}


def _amount(low: int, high: int, step: int = 50) -> Decimal:
    return Decimal(random.randrange(low, high + step, step))


def seed_demo_data(storage: LedgerStorage, months: int = 3, seed: Optional[int] = None, today: Optional[date] = None) -> None:
    """Populate ``storage`` with users, orders, payments, expenses and transactions."""
    fake = Faker("en_IN")
    if seed is not None:
        Faker.seed(seed)
        random.seed(seed)
    today = today or date.today()
    start = today - timedelta(days=30 * months)

    ledger = LedgerEngine(
        BalanceService(storage, settings.INITIAL_BANK_BALANCE, settings.INITIAL_CASH_IN_HAND)
    )
    policy = AmountPolicy.from_settings(settings)
    orders = OrderService(storage, ledger, policy)
    expenses = ExpenseService(storage, ledger, policy)
    transactions = TransactionService(storage, ledger, policy)

    if count_users(storage) == 0:
        for role in UserRole:
            create_user(storage, role.value, DEMO_PASSWORD, role=role)
        logger.info(f"Seeded demo users admin/manager/staff (password {DEMO_PASSWORD})")

    order_count = 0
    day = start
    while day <= today:
        for _ in range(random.randint(0, 2)):
            items = [
                {
                    "description": description,
                    "quantity": random.randint(1, 3),
                    "price": price,
                    "discount": random.choice([0, 0, 0, 50, 100]),
                }
                for description, price in random.sample(GARMENTS, random.randint(1, 3))
            ]
            total = sum(Decimal(i["price"] * i["quantity"] - i["discount"]) for i in items)
            advance = min(_amount(500, 2000, 100), total) if random.random() < 0.7 else None
            order = orders.create_order(
                client_name=fake.name(),
                phone="".join(filter(str.isdigit, fake.phone_number()))[-10:],
                items=items,
                order_date=day,
                due_date=day + timedelta(days=random.randint(3, 15)),
                initial_payment=advance,
                initial_payment_mode=random.choice(list(PaymentMode)),
            )
            order_count += 1

            # Later visits settle what is left
            if order.amount_due > 0 and random.random() < 0.6:
                paid_on = min(day + timedelta(days=random.randint(1, 20)), today)
                orders.record_payment(
                    order.id,
                    order.amount_due,
                    random.choice(list(PaymentMode)),
                    payment_date=paid_on,
                    note="Final Payment",
                )

            if order.order_date + timedelta(days=10) < today:
                orders.update_order(
                    order.id,
                    {
                        "work_status": WorkStatus.READY,
                        "delivery_status": random.choice([DeliveryStatus.DELIVERED, DeliveryStatus.PENDING]),
                    },
                )
            elif random.random() < 0.5:
                orders.update_order(order.id, {"work_status": WorkStatus.IN_PROGRESS})

        if random.random() < 0.4:
            category = random.choice(list(EXPENSE_CATEGORIES))
            expenses.create_expense(
                description=random.choice(EXPENSE_CATEGORIES[category]),
                category=category,
                amount=_amount(100, 3000),
                mode=random.choice(list(PaymentMode)),
                expense_date=day,
            )

        # Cash is banked once a week
        if day.weekday() == 5:
            banked = _amount(1000, 5000, 500)
            transactions.create_transaction(
                type=TransactionType.DEPOSIT,
                amount=banked,
                description="Weekly cash deposit",
                mode=FundMode.BANK,
                tx_date=day,
            )
            transactions.create_transaction(
                type=TransactionType.WITHDRAW,
                amount=banked,
                description="Weekly cash deposit",
                mode=FundMode.CASH,
                tx_date=day,
            )
        day += timedelta(days=1)

    logger.info(f"Seeded {order_count} demo orders from {start} to {today}")


def main() -> None:
    from boutique.core.database import SessionLocal, init_db
    from boutique.storage import SqlAlchemyStorage

    init_db()
    db = SessionLocal()
    try:
        seed_demo_data(SqlAlchemyStorage(db))
    finally:
        db.close()


if __name__ == "__main__":
    main()
