from collections import namedtuple
from datetime import date, timedelta
from decimal import Decimal

from wholesale_orders.models.enums import InstallmentStatus
from wholesale_orders.services.payment_status import derive_status
from wholesale_orders.services.stats import compute_stats

TODAY = date(2026, 10, 19)
YESTERDAY = TODAY - timedelta(days=1)
TOMORROW = TODAY + timedelta(days=1)

Doc = namedtuple("Doc", "status amount paid_amount")


def test_fully_paid():
    assert derive_status(Decimal("500.00"), Decimal("500.00"), YESTERDAY, TODAY) == InstallmentStatus.PAID
    assert derive_status(Decimal("500.00"), Decimal("500.00"), TOMORROW, TODAY) == InstallmentStatus.PAID


def test_partial_payment_is_never_overdue():
    assert derive_status(Decimal("500.00"), Decimal("250.00"), YESTERDAY, TODAY) == InstallmentStatus.PARTIALLY_PAID
    assert derive_status(Decimal("500.00"), Decimal("0.01"), TOMORROW, TODAY) == InstallmentStatus.PARTIALLY_PAID


def test_unpaid_depends_on_due_date():
    assert derive_status(Decimal("500.00"), Decimal("0"), YESTERDAY, TODAY) == InstallmentStatus.OVERDUE
    assert derive_status(Decimal("500.00"), Decimal("0"), TODAY, TODAY) == InstallmentStatus.PENDING
    assert derive_status(Decimal("500.00"), None, TOMORROW, TODAY) == InstallmentStatus.PENDING


def test_pure_function():
    args = (Decimal("120.00"), Decimal("0"), YESTERDAY, TODAY)
    assert derive_status(*args) == derive_status(*args)


def test_stats_per_status():
    docs = [
        Doc(InstallmentStatus.PENDING, Decimal("100.00"), Decimal("0.00")),
        Doc(InstallmentStatus.PENDING, Decimal("50.50"), Decimal("0.00")),
        Doc(InstallmentStatus.OVERDUE, Decimal("200.00"), Decimal("0.00")),
        Doc(InstallmentStatus.PARTIALLY_PAID, Decimal("500.00"), Decimal("250.00")),
        Doc(InstallmentStatus.PAID, Decimal("333.34"), Decimal("333.34")),
    ]

    stats = compute_stats(docs)

    assert stats == {
        "total_pending": Decimal("150.50"),
        "total_overdue": Decimal("200.00"),
        "total_partially_paid": Decimal("250.00"),
        "total_paid": Decimal("333.34"),
        "count_pending": 2,
        "count_overdue": 1,
        "count_partially_paid": 1,
        "count_paid": 1,
    }


def test_stats_empty():
    stats = compute_stats([])
    assert stats["total_paid"] == Decimal("0.00")
    assert stats["count_overdue"] == 0
