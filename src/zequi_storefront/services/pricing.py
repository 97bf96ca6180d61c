"""Integer-cent money helpers.

Prices travel as exact strings. Aggregation converts each unit price to whole
cents once, sums integers, and only divides back to a decimal amount for
display or storage.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENT = Decimal("0.01")


def price_to_cents(price: str) -> int:
    """Convert an exact price string to whole cents, rounding half up.

    Args:
        price: Price as typed by the admin, e.g. "2.10"

    Returns:
        int: Amount in cents

    Raises:
        ValueError: If the string is not a finite number or too large to price
    """
    try:
        amount = Decimal(str(price).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid price: {price!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid price: {price!r}")
    try:
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"Price out of range: {price!r}") from e


def line_total_cents(price: str, quantity: int) -> int:
    """Cents for ``quantity`` units of an item priced ``price``."""
    return price_to_cents(price) * quantity


def cents_to_amount(cents: int) -> Decimal:
    """Exact decimal amount for a cent count."""
    return (Decimal(cents) / 100).quantize(_CENT)


def format_amount(cents: int) -> str:
    """Two-decimal display string, e.g. 630 -> "6.30"."""
    return f"{cents_to_amount(cents):.2f}"
