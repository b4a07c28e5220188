from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from boutique.core.exceptions import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value, field: str = "amount") -> Decimal:
    """
    Parse a money value (string, int, float or Decimal) to a Decimal
    rounded to paise.

    Raises:
        ValidationError on anything that is not a finite number
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a decimal number, got {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
