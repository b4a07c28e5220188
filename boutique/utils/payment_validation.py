from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from boutique.core.exceptions import ValidationError
from boutique.models import FundMode, PaymentMode
from boutique.utils.money import to_decimal


@dataclass(frozen=True)
class AmountPolicy:
    """
    Which amounts the shop accepts for payments, expenses and fund transactions.

    require_positive: reject zero and negative amounts. Turning it off lets
        staff key in negative corrections.
    allow_overpayment: accept order payments larger than what is still due.
    """
    require_positive: bool = True
    allow_overpayment: bool = True

    @classmethod
    def from_settings(cls, settings) -> "AmountPolicy":
        return cls(
            require_positive=settings.REQUIRE_POSITIVE_AMOUNTS,
            allow_overpayment=settings.ALLOW_OVERPAYMENT,
        )

    def check_amount(self, value, field: str = "amount") -> Decimal:
        """Parse and validate a money amount."""
        amount = to_decimal(value, field)
        if self.require_positive and amount <= 0:
            raise ValidationError(f"{field} must be greater than zero")
        return amount

    def check_payment(self, value, amount_due: Decimal) -> Decimal:
        """Validate an order payment against what is still due on the order."""
        amount = self.check_amount(value)
        if not self.allow_overpayment and amount > amount_due:
            raise ValidationError(
                f"Payment of {amount} exceeds the outstanding balance ({amount_due})"
            )
        return amount


def validate_payment_mode(mode, field: str = "mode") -> PaymentMode:
    """
    Validates a payment channel (Cash, Bank or UPI).

    Raises:
        ValidationError on unknown values
    """
    if isinstance(mode, PaymentMode):
        return mode
    try:
        return PaymentMode(mode)
    except ValueError:
        raise ValidationError(f"Invalid {field}: {mode!r}. Expected one of Cash, Bank, UPI")


def validate_fund_mode(mode: Optional[object]) -> FundMode:
    """Fund transactions move money in or out of Cash or Bank only."""
    if isinstance(mode, FundMode):
        return mode
    value = mode.value if isinstance(mode, PaymentMode) else mode
    try:
        return FundMode(value)
    except ValueError:
        raise ValidationError(f"Invalid transaction mode: {mode!r}. Expected Cash or Bank")
