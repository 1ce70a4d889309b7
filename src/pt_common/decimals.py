"""Decimal arithmetic utilities for balances, share quantities and prices.

All monetary values and share quantities are decimal.Decimal. No float in the
domain layer; floats only appear when a value is serialized for display.
"""

from decimal import Decimal

from src.pt_common.errors import LedgerInvariantError

ZERO = Decimal("0")

# Results in [-NEGATIVE_EPSILON, 0) are rounding noise and clamp to zero.
NEGATIVE_EPSILON = Decimal("1e-12")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert to Decimal via str() so floats keep their printed value: 0.1 -> Decimal('0.1')."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def settle_non_negative(value: Decimal, field: str) -> Decimal:
    """Clamp rounding underflow to zero; anything more negative is a defect.

    Negative zero is normalized to zero.
    """
    if value < ZERO:
        if value >= -NEGATIVE_EPSILON:
            return ZERO
        raise LedgerInvariantError(field, value)
    if value == ZERO:
        return ZERO
    return value


def money_display(amount: Decimal) -> str:
    """Format currency for display: Decimal('10500') -> '$10,500.00', Decimal('-12') -> '-$12.00'."""
    quantized = amount.quantize(Decimal("0.01"))
    if quantized < ZERO:
        return f"-${-quantized:,.2f}"
    return f"${quantized:,.2f}"
