from datetime import date, timedelta
from decimal import Decimal

import pytest

from wholesale_orders.errors import (
    ConcurrentModification,
    Forbidden,
    NotFound,
    OrderNotEditable,
    OverpaymentRejected,
    ValidationError,
)
from wholesale_orders.models.enums import CreditType, InstallmentStatus, OrderStatus, PaymentType
from wholesale_orders.models.installment import Installment as InstallmentModel
from wholesale_orders.models.order import Order as OrderModel
from wholesale_orders.schemas.installment import InstallmentFilters
from wholesale_orders.services.installment import InstallmentService
from wholesale_orders.utils.db_service import transaction

from conftest import ADMIN, OTHER_SELLER, SELLER

pytestmark = pytest.mark.anyio

TODAY = date(2026, 10, 19)
YESTERDAY = TODAY - timedelta(days=1)


async def add_credit_order(db, amounts=("500.00",), due_date=YESTERDAY, seller=SELLER, client_id=7,
                           status=OrderStatus.TAKEN):
    """Order with one installment per amount, due 30 days apart from ``due_date``."""
    total = sum(Decimal(a) for a in amounts)
    order = OrderModel(
        client_id=client_id,
        salesperson_id=seller.id,
        created_by=seller.id,
        status=status,
        payment_type=PaymentType.CREDIT,
        credit_type=CreditType.INVOICE,
        installment_count=len(amounts),
        total=total,
    )
    order.items = []
    order.installments = [
        InstallmentModel(
            installment_number=n,
            amount=Decimal(amount),
            due_date=due_date + timedelta(days=30 * (n - 1)),
            days_due=30 * n,
            paid_amount=Decimal("0.00"),
            status=InstallmentStatus.PENDING,
        )
        for n, amount in enumerate(amounts, start=1)
    ]
    db.add(order)
    await db.commit()
    return order.id, [i.id for i in order.installments]


# ────────────── Sweep / payments ──────────────
async def test_overdue_then_partially_paid(db, log):
    _, (installment_id,) = await add_credit_order(db)
    service = InstallmentService(db, log)

    assert await service.sweep_overdue(TODAY) == 1
    assert (await service.read_installment(installment_id)).status == InstallmentStatus.OVERDUE
    assert await service.sweep_overdue(TODAY) == 0

    installment = await service.register_payment(installment_id, Decimal("250.00"), TODAY, "first half", actor=ADMIN)

    assert installment.status == InstallmentStatus.PARTIALLY_PAID
    assert installment.paid_amount == Decimal("250.00")
    assert installment.payment_date == TODAY
    assert installment.notes == "first half"
    # partially paid stays partially paid after the due date
    assert await service.sweep_overdue(TODAY + timedelta(days=10)) == 0


async def test_full_payment_marks_paid(db, log):
    _, (installment_id,) = await add_credit_order(db)
    service = InstallmentService(db, log)

    await service.register_payment(installment_id, Decimal("250.00"), YESTERDAY)
    installment = await service.register_payment(installment_id, "500.00", TODAY)

    assert installment.status == InstallmentStatus.PAID
    assert installment.paid_amount == Decimal("500.00")
    assert await service.sweep_overdue(TODAY) == 0


async def test_zero_payment_resets_to_due_date_status(db, log):
    _, (installment_id,) = await add_credit_order(db)
    service = InstallmentService(db, log)
    await service.register_payment(installment_id, Decimal("100.00"), TODAY)

    installment = await service.register_payment(installment_id, Decimal("0"), TODAY)

    assert installment.status == InstallmentStatus.OVERDUE
    assert installment.paid_amount == Decimal("0.00")


async def test_overpayment_is_rejected(db, log):
    _, (installment_id,) = await add_credit_order(db)
    service = InstallmentService(db, log)
    await service.register_payment(installment_id, Decimal("100.00"), TODAY)

    with pytest.raises(OverpaymentRejected):
        await service.register_payment(installment_id, Decimal("500.01"), TODAY)

    installment = await service.read_installment(installment_id)
    assert installment.paid_amount == Decimal("100.00")
    assert installment.status == InstallmentStatus.PARTIALLY_PAID


@pytest.mark.parametrize("amount", [Decimal("-0.01"), "abc", None])
async def test_invalid_payment_amount(db, log, amount):
    _, (installment_id,) = await add_credit_order(db)

    with pytest.raises(ValidationError):
        await InstallmentService(db, log).register_payment(installment_id, amount, TODAY)


async def test_payment_needs_a_date(db, log):
    _, (installment_id,) = await add_credit_order(db)

    with pytest.raises(ValidationError):
        await InstallmentService(db, log).register_payment(installment_id, Decimal("10.00"), None)


async def test_unknown_installment(db, log):
    with pytest.raises(NotFound):
        await InstallmentService(db, log).register_payment(999, Decimal("10.00"), TODAY)


async def test_expected_version_mismatch(db, log):
    _, (installment_id,) = await add_credit_order(db)
    service = InstallmentService(db, log)
    version = (await service.read_installment(installment_id)).version
    await service.register_payment(installment_id, Decimal("10.00"), TODAY, expected_version=version)

    with pytest.raises(ConcurrentModification):
        await service.register_payment(installment_id, Decimal("20.00"), TODAY, expected_version=version)

    assert (await service.read_installment(installment_id)).paid_amount == Decimal("10.00")


async def test_stale_write_is_rejected(session_factory, log):
    async with session_factory() as setup:
        _, (installment_id,) = await add_credit_order(setup)

    async with session_factory() as first, session_factory() as second:
        stale = await first.get(InstallmentModel, installment_id)
        await InstallmentService(second, log).register_payment(installment_id, Decimal("100.00"), TODAY)

        with pytest.raises(ConcurrentModification):
            async with transaction(first, log, "installment", {"id": installment_id}):
                stale.notes = "edited from an old read"

        fresh = await InstallmentService(second, log).read_installment(installment_id)
        assert fresh.notes is None
        assert fresh.paid_amount == Decimal("100.00")


async def test_concurrent_sweeps_count_each_row_once(session_factory, log):
    async with session_factory() as setup:
        await add_credit_order(setup, amounts=("100.00", "100.00"), due_date=TODAY - timedelta(days=40))

    async with session_factory() as first, session_factory() as second:
        assert await InstallmentService(first, log).sweep_overdue(TODAY) == 2
        assert await InstallmentService(second, log).sweep_overdue(TODAY) == 0


# ────────────── Term override ──────────────
async def test_update_terms_rederives_status(db, log):
    _, (installment_id,) = await add_credit_order(db)
    service = InstallmentService(db, log)
    await service.sweep_overdue(TODAY)

    installment = await service.update_terms(installment_id, due_date=TODAY + timedelta(days=5), days_due=45,
                                             actor=SELLER, today=TODAY)

    assert installment.due_date == TODAY + timedelta(days=5)
    assert installment.days_due == 45
    assert installment.status == InstallmentStatus.PENDING


async def test_update_terms_rules(db, log):
    _, (installment_id,) = await add_credit_order(db)
    _, (confirmed_id,) = await add_credit_order(db, status=OrderStatus.CONFIRMED)
    service = InstallmentService(db, log)

    with pytest.raises(Forbidden):
        await service.update_terms(installment_id, days_due=10, actor=OTHER_SELLER, today=TODAY)
    with pytest.raises(OrderNotEditable):
        await service.update_terms(confirmed_id, days_due=10, actor=ADMIN, today=TODAY)
    with pytest.raises(ValidationError):
        await service.update_terms(installment_id, days_due=-1, actor=ADMIN, today=TODAY)


# ────────────── Listing / stats ──────────────
async def test_listing_filters_and_visibility(db, log):
    await add_credit_order(db, amounts=("100.00", "200.00"), client_id=7)
    await add_credit_order(db, amounts=("300.00",), due_date=TODAY + timedelta(days=3), seller=OTHER_SELLER, client_id=8)
    service = InstallmentService(db, log)

    everything = await service.list_installments(actor=ADMIN, today=TODAY)
    assert [i.amount for i in everything] == [Decimal("100.00"), Decimal("300.00"), Decimal("200.00")]

    own = await service.list_installments(actor=SELLER, today=TODAY)
    assert [i.amount for i in own] == [Decimal("100.00"), Decimal("200.00")]

    # a sales user cannot widen the listing to another salesperson
    own = await service.list_installments(InstallmentFilters(salesperson_id=OTHER_SELLER.id), SELLER, TODAY)
    assert len(own) == 2

    overdue = await service.list_installments(InstallmentFilters(status=InstallmentStatus.OVERDUE), ADMIN, TODAY)
    assert [i.amount for i in overdue] == [Decimal("100.00")]

    ranged = await service.list_installments(
        InstallmentFilters(min_amount=Decimal("150"), max_amount=Decimal("250")), ADMIN, TODAY
    )
    assert [i.amount for i in ranged] == [Decimal("200.00")]

    dated = await service.list_installments(
        InstallmentFilters(client_id=8, due_date_from=TODAY, due_date_to=TODAY + timedelta(days=3)), ADMIN, TODAY
    )
    assert [i.amount for i in dated] == [Decimal("300.00")]


async def test_sales_cannot_read_foreign_installment(db, log):
    _, (installment_id,) = await add_credit_order(db, seller=OTHER_SELLER)

    with pytest.raises(NotFound):
        await InstallmentService(db, log).read_installment(installment_id, SELLER)


async def test_stats(db, log):
    _, ids = await add_credit_order(db, amounts=("100.00", "200.00", "300.00"), due_date=TODAY - timedelta(days=31))
    await add_credit_order(db, amounts=("50.00",), due_date=TODAY + timedelta(days=1), seller=OTHER_SELLER)
    service = InstallmentService(db, log)
    await service.register_payment(ids[0], Decimal("100.00"), TODAY)
    await service.register_payment(ids[1], Decimal("80.00"), TODAY)

    stats = await service.read_stats(actor=ADMIN, today=TODAY)

    assert stats["total_paid"] == Decimal("100.00")
    assert stats["total_partially_paid"] == Decimal("120.00")
    assert stats["total_overdue"] == Decimal("0.00")
    assert stats["total_pending"] == Decimal("350.00")
    assert stats["count_paid"] == 1
    assert stats["count_partially_paid"] == 1
    assert stats["count_pending"] == 2

    own = await service.read_stats(actor=OTHER_SELLER, today=TODAY)
    assert own["count_pending"] == 1
    assert own["total_pending"] == Decimal("50.00")


async def test_foreign_seller_cannot_register_payment(db, log):
    _, (installment_id,) = await add_credit_order(db, seller=SELLER)
    service = InstallmentService(db, log)

    with pytest.raises(NotFound):
        await service.register_payment(installment_id, Decimal("500.00"), TODAY, actor=OTHER_SELLER)

    installment = await service.read_installment(installment_id)
    assert installment.paid_amount == Decimal("0.00")
    assert installment.payment_date is None

    installment = await service.register_payment(installment_id, Decimal("500.00"), TODAY, actor=SELLER)
    assert installment.status == InstallmentStatus.PAID
