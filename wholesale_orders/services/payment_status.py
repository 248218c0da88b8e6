# wholesale_orders/services/payment_status.py

from datetime import date

from wholesale_orders.models.enums import InstallmentStatus
from wholesale_orders.services.money import as_decimal, Number


def derive_status(amount: Number, paid_amount: Number, due_date: date, today: date) -> InstallmentStatus:
    """
    Installment status from amounts and dates.

    A partial payment wins over the due date: a partially paid installment is
    never reported as overdue.
    """
    amount = as_decimal(amount)
    paid_amount = as_decimal(paid_amount or 0)

    if paid_amount >= amount:
        return InstallmentStatus.PAID
    if paid_amount > 0:
        return InstallmentStatus.PARTIALLY_PAID
    if due_date < today:
        return InstallmentStatus.OVERDUE
    return InstallmentStatus.PENDING
