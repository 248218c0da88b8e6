from decimal import Decimal

import pytest

from wholesale_orders.errors import ValidationError
from wholesale_orders.services.money import compute_totals, compute_tax, line_subtotal, to_money


def test_single_item_totals():
    totals = compute_totals([(3, Decimal("19.90"))])

    assert totals.subtotal == Decimal("59.70")
    assert totals.tax == Decimal("10.75")
    assert totals.total == Decimal("70.45")


def test_totals_invariants_hold_for_mixed_items():
    item_sets = [
        [],
        [(1, "0.01")],
        [(7, "3.33"), (2, "0.05")],
        [(1, "1700.00"), (4, "450.00")],
        [(13, "12.37"), (5, "0.99"), (250, "1.11")],
    ]
    for items in item_sets:
        totals = compute_totals(items)
        assert totals.total == totals.subtotal + totals.tax
        assert totals.tax == to_money(totals.subtotal * Decimal("0.18"))


def test_tax_is_rounded_half_up():
    # 0.25 * 0.18 = 0.045 -> 0.05
    assert compute_tax(Decimal("0.25")) == Decimal("0.05")


def test_repeated_calls_are_identical():
    items = [(3, "19.90"), (11, "0.07"), (2, "999.99")]
    first = compute_totals(items)
    for _ in range(50):
        assert compute_totals(items) == first


def test_float_prices_do_not_drift():
    assert compute_totals([(3, 19.9)]).subtotal == Decimal("59.70")
    assert line_subtotal(3, 0.1) == Decimal("0.30")


def test_items_as_objects():
    class Item:
        def __init__(self, quantity, unit_price):
            self.quantity = quantity
            self.unit_price = unit_price

    totals = compute_totals([Item(2, Decimal("10.00")), Item(1, Decimal("5.50"))])
    assert totals.subtotal == Decimal("25.50")
    assert totals.tax == Decimal("4.59")


@pytest.mark.parametrize("quantity,price", [
    (0, "1.00"),
    (-1, "1.00"),
    (1.5, "1.00"),
    (True, "1.00"),
    (1, "-0.01"),
    (1, "1.001"),
    (1, "abc"),
])
def test_invalid_lines_are_rejected(quantity, price):
    with pytest.raises(ValidationError):
        compute_totals([(quantity, price)])
