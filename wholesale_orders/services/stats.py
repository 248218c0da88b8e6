# wholesale_orders/services/stats.py

from decimal import Decimal
from typing import Iterable

from wholesale_orders.models.enums import InstallmentStatus
from wholesale_orders.services.money import as_decimal, to_money

_KEYS = {
    InstallmentStatus.PENDING: "pending",
    InstallmentStatus.OVERDUE: "overdue",
    InstallmentStatus.PARTIALLY_PAID: "partially_paid",
    InstallmentStatus.PAID: "paid",
}


def compute_stats(installments: Iterable) -> dict:
    """
    Receivables totals and counts per status.

    Open installments contribute what is still owed (amount - paid_amount);
    paid ones contribute their full amount.
    """
    totals = {key: Decimal(0) for key in _KEYS.values()}
    counts = {key: 0 for key in _KEYS.values()}

    for installment in installments:
        key = _KEYS[InstallmentStatus(installment.status)]
        amount = as_decimal(installment.amount)
        if key == "paid":
            totals[key] += amount
        else:
            totals[key] += amount - as_decimal(installment.paid_amount or 0)
        counts[key] += 1

    stats = {}
    for key in _KEYS.values():
        stats[f"total_{key}"] = to_money(totals[key])
    for key in _KEYS.values():
        stats[f"count_{key}"] = counts[key]
    return stats
