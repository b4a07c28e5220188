"""
Shared fixtures.

Service-level fixtures are parametrized over both storage backends, so every
ledger test runs once against the in-memory adapter and once against
SQLAlchemy on an in-memory SQLite database.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import boutique.models  # noqa: F401  registers mappers on Base
from boutique.core.database import Base
from boutique.core.dependencies import get_storage
from boutique.main import app
from boutique.services.balance_service import BalanceService
from boutique.services.expense_service import ExpenseService
from boutique.services.ledger import LedgerEngine
from boutique.services.order_service import OrderService
from boutique.services.report_service import ReportService
from boutique.services.transaction_service import TransactionService
from boutique.storage import InMemoryStorage, SqlAlchemyStorage
from boutique.utils.payment_validation import AmountPolicy

PASSWORD = "secret123"


@pytest.fixture
def sql_engine():
    """Fresh in-memory SQLite database shared by every connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sql_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=sql_engine)


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    if request.param == "memory":
        yield InMemoryStorage()
        return

    db = request.getfixturevalue("session_factory")()
    try:
        yield SqlAlchemyStorage(db)
    finally:
        db.close()


@pytest.fixture
def policy():
    return AmountPolicy()


@pytest.fixture
def balances(storage):
    return BalanceService(storage)


@pytest.fixture
def ledger(balances):
    return LedgerEngine(balances)


@pytest.fixture
def orders(storage, ledger, policy):
    return OrderService(storage, ledger, policy)


@pytest.fixture
def expenses(storage, ledger, policy):
    return ExpenseService(storage, ledger, policy)


@pytest.fixture
def transactions(storage, ledger, policy):
    return TransactionService(storage, ledger, policy)


@pytest.fixture
def reports(storage):
    return ReportService(storage)


def item(description="Silk Saree Blouse", price="1000", quantity=1, discount="0"):
    return {"description": description, "price": price, "quantity": quantity, "discount": discount}


def current_balances(balances):
    row = balances.get()
    return Decimal(row.bank_balance), Decimal(row.cash_in_hand)


# ---------- API ----------

@pytest.fixture
def client(session_factory):
    def override_get_storage():
        db = session_factory()
        try:
            yield SqlAlchemyStorage(db)
        finally:
            db.close()

    app.dependency_overrides[get_storage] = override_get_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, username, password=PASSWORD):
    resp = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/v1/auth/register", json={"username": "admin", "password": PASSWORD})
    assert resp.status_code == 201, resp.text
    return login(client, "admin")


@pytest.fixture
def manager_headers(client, admin_headers):
    resp = client.post(
        "/api/v1/users",
        json={"username": "manager", "password": PASSWORD, "role": "manager"},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    return login(client, "manager")


@pytest.fixture
def staff_headers(client, admin_headers):
    resp = client.post(
        "/api/v1/users",
        json={"username": "staff", "password": PASSWORD, "role": "staff"},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    return login(client, "staff")
