# wholesale_orders/services/schedule.py

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from wholesale_orders.config import settings
from wholesale_orders.errors import InvalidScheduleParameters, ValidationError
from wholesale_orders.models.enums import PaymentType
from wholesale_orders.services.money import as_decimal, floor_money, to_money, Number


@dataclass(frozen=True)
class ScheduleEntry:
    installment_number: int
    amount: Decimal
    due_date: date
    days_due: int


def validate_credit_terms(payment_type, installment_count) -> int:
    """A schedule exists only for credit orders with at least one installment."""
    if payment_type != PaymentType.CREDIT:
        raise InvalidScheduleParameters(
            "Installments can only be generated for credit orders",
            {"payment_type": payment_type},
        )
    if installment_count is None or installment_count < 1:
        raise InvalidScheduleParameters(
            "Credit orders need an installment count of at least 1",
            {"installment_count": installment_count},
        )
    return installment_count


def generate_schedule(
    total: Number,
    installment_count: int,
    first_due_date: date,
    interval_days: int | None = None,
    max_installments: int | None = None,
) -> list[ScheduleEntry]:
    """
    Splits ``total`` into ``installment_count`` dated installments.

    Every installment gets ``floor(total / N, 2)``; the last one takes the
    remainder so the amounts add up to ``total`` to the cent. Installment k is
    due ``(k - 1) * interval_days`` after ``first_due_date``.
    """
    interval_days = settings.INSTALLMENT_INTERVAL_DAYS if interval_days is None else interval_days
    max_installments = settings.MAX_INSTALLMENTS if max_installments is None else max_installments

    if isinstance(installment_count, bool) or not isinstance(installment_count, int):
        raise InvalidScheduleParameters("Installment count must be an integer", {"installment_count": installment_count})
    if not 1 <= installment_count <= max_installments:
        raise InvalidScheduleParameters(
            f"Installment count must be between 1 and {max_installments}",
            {"installment_count": installment_count},
        )
    if not isinstance(first_due_date, date):
        raise InvalidScheduleParameters("First due date is required", {"first_due_date": first_due_date})
    if isinstance(interval_days, bool) or not isinstance(interval_days, int) or interval_days < 0:
        raise InvalidScheduleParameters("Interval must be a non-negative number of days", {"interval_days": interval_days})

    try:
        total = to_money(total)
    except ValidationError as e:
        raise InvalidScheduleParameters(e.message, {"total": str(total)})
    if total < 0:
        raise InvalidScheduleParameters("Total cannot be negative", {"total": str(total)})

    base = floor_money(total / as_decimal(installment_count))
    last = total - base * (installment_count - 1)

    entries = []
    for k in range(1, installment_count + 1):
        entries.append(ScheduleEntry(
            installment_number=k,
            amount=last if k == installment_count else base,
            due_date=first_due_date + timedelta(days=(k - 1) * interval_days),
            days_due=k * interval_days,
        ))
    return entries
