# wholesale_orders/services/money.py

"""
Money and tax arithmetic for orders.

All amounts are ``Decimal`` with two places, rounded HALF_UP. The subtotal is
rounded once after summing the lines, never per line.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, ROUND_DOWN, InvalidOperation
from typing import Iterable, Union

from wholesale_orders.config import settings
from wholesale_orders.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, str, float]


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def as_decimal(value: Number) -> Decimal:
    """Converts to Decimal; floats go through str() so 19.9 stays 19.9."""
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Not a valid amount: {value!r}")


def to_money(value: Number) -> Decimal:
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Number) -> Decimal:
    return as_decimal(value).quantize(CENT, rounding=ROUND_DOWN)


def validate_line(quantity: int, unit_price: Number) -> Decimal:
    """Checks an item line and returns the unit price as money."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", {"quantity": quantity})
    price = as_decimal(unit_price)
    if not price.is_finite() or price < 0:
        raise ValidationError("Unit price must be non-negative", {"unit_price": str(unit_price)})
    if price != price.quantize(CENT):
        raise ValidationError("Unit price has more than two decimals", {"unit_price": str(unit_price)})
    return price.quantize(CENT)


def line_subtotal(quantity: int, unit_price: Number) -> Decimal:
    return to_money(quantity * validate_line(quantity, unit_price))


def compute_tax(subtotal: Number, tax_rate: Number | None = None) -> Decimal:
    rate = as_decimal(settings.TAX_RATE if tax_rate is None else tax_rate)
    return to_money(as_decimal(subtotal) * rate)


def compute_totals(items: Iterable, tax_rate: Number | None = None) -> Totals:
    """
    Totals for a collection of items.

    Items are objects with ``quantity`` and ``unit_price`` attributes or
    ``(quantity, unit_price)`` pairs.
    """
    raw = Decimal(0)
    for item in items:
        if isinstance(item, tuple):
            quantity, unit_price = item
        else:
            quantity, unit_price = item.quantity, item.unit_price
        raw += quantity * validate_line(quantity, unit_price)

    subtotal = to_money(raw)
    tax = compute_tax(subtotal, tax_rate)
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)
