from typing import Iterator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from boutique.core.config import settings
from boutique.core.database import SessionLocal
from boutique.core.exceptions import PermissionDeniedError
from boutique.core.security import decode_access_token
from boutique.models.user import User
from boutique.services.balance_service import BalanceService
from boutique.services.expense_service import ExpenseService
from boutique.services.ledger import LedgerEngine
from boutique.services.order_service import OrderService
from boutique.services.report_service import ReportService
from boutique.services.transaction_service import TransactionService
from boutique.storage import InMemoryStorage, LedgerStorage, SqlAlchemyStorage
from boutique.utils.payment_validation import AmountPolicy


def get_storage(request: Request) -> Iterator[LedgerStorage]:
    """
    Storage for one request. The memory backend is shared by the whole app
    (created at startup); the SQL backend gets a fresh session per request.
    """
    if settings.STORAGE_BACKEND == "memory":
        storage = getattr(request.app.state, "storage", None)
        if storage is None:
            storage = request.app.state.storage = InMemoryStorage()
        yield storage
        return

    db = SessionLocal()
    try:
        yield SqlAlchemyStorage(db)
    finally:
        db.close()


# ---------- services ----------

def get_policy() -> AmountPolicy:
    return AmountPolicy.from_settings(settings)


def get_balance_service(storage: LedgerStorage = Depends(get_storage)) -> BalanceService:
    return BalanceService(
        storage,
        opening_bank=settings.INITIAL_BANK_BALANCE,
        opening_cash=settings.INITIAL_CASH_IN_HAND,
    )


def get_ledger(balances: BalanceService = Depends(get_balance_service)) -> LedgerEngine:
    return LedgerEngine(balances)


def get_order_service(
    storage: LedgerStorage = Depends(get_storage),
    ledger: LedgerEngine = Depends(get_ledger),
    policy: AmountPolicy = Depends(get_policy),
) -> OrderService:
    return OrderService(storage, ledger, policy)


def get_expense_service(
    storage: LedgerStorage = Depends(get_storage),
    ledger: LedgerEngine = Depends(get_ledger),
    policy: AmountPolicy = Depends(get_policy),
) -> ExpenseService:
    return ExpenseService(storage, ledger, policy)


def get_transaction_service(
    storage: LedgerStorage = Depends(get_storage),
    ledger: LedgerEngine = Depends(get_ledger),
    policy: AmountPolicy = Depends(get_policy),
) -> TransactionService:
    return TransactionService(storage, ledger, policy)


def get_report_service(storage: LedgerStorage = Depends(get_storage)) -> ReportService:
    return ReportService(
        storage,
        opening_bank=settings.INITIAL_BANK_BALANCE,
        opening_cash=settings.INITIAL_CASH_IN_HAND,
    )


# ---------- auth ----------

# Use HTTPBearer so Swagger automatically asks for a token; missing
# credentials are turned into a 401 below
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: LedgerStorage = Depends(get_storage),
) -> User:
    """
    Get the currently authenticated user from the JWT token.
    Raises 401 if the token is missing or invalid, or the user does not exist.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid token")

    username = payload.get("sub")
    if not username:
        raise _unauthorized("Token payload missing subject")

    user = storage.get_user_by_username(username)
    if not user:
        raise _unauthorized("User not found")

    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user


def require_manager(current_user: User = Depends(get_current_active_user)) -> User:
    """Managers and admins only."""
    if not current_user.is_manager_or_above:
        raise PermissionDeniedError("Manager or admin role required")
    return current_user


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    if not current_user.is_admin:
        raise PermissionDeniedError("Admin role required")
    return current_user
