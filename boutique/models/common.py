import enum
import secrets
import string
from datetime import datetime, timezone


def generate_custom_id(prefix: str, length: int = 10) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentMode(str, enum.Enum):
    """Channel money moves through. UPI settles into the bank account."""
    CASH = "Cash"
    BANK = "Bank"
    UPI = "UPI"


class Account(str, enum.Enum):
    """The two running balances."""
    BANK = "bank_balance"
    CASH = "cash_in_hand"


def account_for_mode(mode) -> Account:
    """Cash -> cash in hand; Bank and UPI -> bank balance."""
    value = mode.value if isinstance(mode, enum.Enum) else mode
    if value == PaymentMode.CASH.value:
        return Account.CASH
    if value in (PaymentMode.BANK.value, PaymentMode.UPI.value):
        return Account.BANK
    raise ValueError(f"Unknown payment mode: {mode}")
