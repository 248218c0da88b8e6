# wholesale_orders/services/installment.py

from datetime import date

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from fastapi import Request

from wholesale_orders.errors import (
    NotFound,
    OrderNotEditable,
    OverpaymentRejected,
    ValidationError,
    InvalidScheduleParameters,
)
from wholesale_orders.models.enums import InstallmentStatus, UserRole
from wholesale_orders.models.installment import Installment as InstallmentModel
from wholesale_orders.models.order import Order as OrderModel
from wholesale_orders.schemas.installment import InstallmentFilters
from wholesale_orders.services.money import as_decimal, to_money, ZERO
from wholesale_orders.services.order_status import ensure_editable, ensure_can_modify
from wholesale_orders.services.payment_status import derive_status
from wholesale_orders.services.schedule import generate_schedule, validate_credit_terms
from wholesale_orders.services.stats import compute_stats
from wholesale_orders.utils.db_service import transaction, ensure_version
from wholesale_orders.utils.log import Log


# ────────────── Schedule (used by the order ledger) ──────────────
def has_payments(order: OrderModel) -> bool:
    return any(i.paid_amount and i.paid_amount > 0 for i in order.installments)


def ensure_schedule_replaceable(order: OrderModel) -> None:
    if has_payments(order):
        raise OrderNotEditable(
            f"Order {order.id} has registered payments, its schedule can no longer change",
            {"id": order.id},
        )


def current_interval(order: OrderModel) -> int | None:
    """Gap between the first two due dates of the current schedule."""
    if len(order.installments) < 2:
        return None
    first, second = order.installments[0], order.installments[1]
    return (second.due_date - first.due_date).days


async def replace_schedule(
    db: AsyncSession,
    order: OrderModel,
    first_due_date: date,
    interval_days: int | None = None,
    today: date | None = None,
) -> list[InstallmentModel]:
    """
    Replaces the order's installments with a fresh set built from its total.

    Runs inside the caller's transaction: either the whole new set is written
    together with the caller's other changes, or nothing is.
    """
    today = today or date.today()
    count = validate_credit_terms(order.payment_type, order.installment_count)
    if not order.total or order.total <= 0:
        raise InvalidScheduleParameters("Order total must be positive to build a schedule", {"id": order.id})
    entries = generate_schedule(order.total, count, first_due_date, interval_days)
    ensure_schedule_replaceable(order)

    if order.installments:
        order.installments.clear()
        # old rows must be gone before the new numbers are inserted
        await db.flush()

    for entry in entries:
        order.installments.append(InstallmentModel(
            installment_number=entry.installment_number,
            amount=entry.amount,
            due_date=entry.due_date,
            days_due=entry.days_due,
            paid_amount=ZERO,
            status=derive_status(entry.amount, ZERO, entry.due_date, today),
        ))
    return list(order.installments)


async def clear_schedule(db: AsyncSession, order: OrderModel) -> None:
    ensure_schedule_replaceable(order)
    if order.installments:
        order.installments.clear()
        await db.flush()


# ────────────── Payment documents ──────────────
class InstallmentService:
    """
    Payment document status engine: payment registration, term overrides,
    the overdue sweep, listings and receivables statistics.
    """

    def __init__(self, db: AsyncSession, log: Log):
        self.db = db
        self.log = log

    @classmethod
    def from_request(cls, request: Request) -> "InstallmentService":
        return cls(request.state.db, request.app.state.log)

    async def _get_installment(self, installment_id: int) -> InstallmentModel:
        result = await self.db.execute(
            select(InstallmentModel)
            .where(InstallmentModel.id == installment_id)
            .execution_options(populate_existing=True)
        )
        installment = result.scalar_one_or_none()
        if installment is None:
            await self.log.log_error("installment", "Installment not found", {"id": installment_id})
            raise NotFound(f"Installment {installment_id} not found", {"id": installment_id})
        return installment

    async def _ensure_visible(self, installment: InstallmentModel, actor=None) -> None:
        """Sales users only see installments of the orders they sell."""
        if actor is not None and actor.role == UserRole.SALES:
            order = await self.db.get(OrderModel, installment.order_id)
            if order is None or order.salesperson_id != actor.id:
                raise NotFound(f"Installment {installment.id} not found", {"id": installment.id})

    async def read_installment(self, installment_id: int, actor=None) -> InstallmentModel:
        installment = await self._get_installment(installment_id)
        await self._ensure_visible(installment, actor)
        return installment

    # ────────────── Register payment ──────────────
    async def register_payment(
        self,
        installment_id: int,
        paid_amount,
        payment_date: date,
        notes: str | None = None,
        actor=None,
        expected_version: int | None = None,
    ) -> InstallmentModel:
        """
        Records the cumulative amount paid on an installment.

        Registering again overwrites the previous amount and date. The status
        is derived with ``payment_date`` standing in for today.
        """
        paid_amount = as_decimal(paid_amount)
        if not paid_amount.is_finite() or paid_amount < 0:
            raise ValidationError("Paid amount cannot be negative", {"paid_amount": str(paid_amount)})
        if not isinstance(payment_date, date):
            raise ValidationError("Payment date is required", {"payment_date": payment_date})
        paid_amount = to_money(paid_amount)

        data = {"id": installment_id, "paid_amount": paid_amount, "payment_date": payment_date}
        async with transaction(self.db, self.log, "installment", data):
            installment = await self._get_installment(installment_id)
            await self._ensure_visible(installment, actor)
            ensure_version(installment, expected_version)

            if paid_amount > installment.amount:
                await self.log.log_warning("installment", "Overpayment rejected", {
                    **data, "amount": installment.amount,
                })
                raise OverpaymentRejected(
                    f"Paid amount {paid_amount} exceeds installment amount {installment.amount}",
                    {**data, "amount": installment.amount},
                )

            installment.paid_amount = paid_amount
            installment.payment_date = payment_date
            installment.notes = notes or None
            installment.status = derive_status(
                installment.amount, paid_amount, installment.due_date, payment_date
            )

        await self.log.log_info("installment", "Payment registered", {
            **data,
            "status": installment.status,
            "actor_id": getattr(actor, "id", None),
        })
        return installment

    # ────────────── Term override ──────────────
    async def update_terms(
        self,
        installment_id: int,
        due_date: date | None = None,
        days_due: int | None = None,
        actor=None,
        today: date | None = None,
    ) -> InstallmentModel:
        """Overrides the due date and/or the informational days count of one installment."""
        if days_due is not None and days_due < 0:
            raise ValidationError("Days due cannot be negative", {"days_due": days_due})
        today = today or date.today()

        data = {"id": installment_id, "due_date": due_date, "days_due": days_due}
        async with transaction(self.db, self.log, "installment", data):
            installment = await self._get_installment(installment_id)
            order = await self.db.get(OrderModel, installment.order_id)
            ensure_editable(order)
            if actor is not None:
                ensure_can_modify(actor, order)

            if due_date is not None:
                installment.due_date = due_date
            if days_due is not None:
                installment.days_due = days_due
            installment.status = derive_status(
                installment.amount, installment.paid_amount, installment.due_date, today
            )

        await self.log.log_info("installment", "Installment terms updated", data)
        return installment

    # ────────────── Overdue sweep ──────────────
    async def sweep_overdue(self, today: date | None = None) -> int:
        """
        Re-derives the status of every unpaid installment against ``today``.

        Each row is written with a conditional update on its version, so a
        concurrent sweep or payment simply makes this one skip the row.
        Returns the number of rows changed; a second run changes nothing.
        """
        today = today or date.today()
        updated = 0

        async with transaction(self.db, self.log, "sweep", {"today": today}):
            result = await self.db.execute(
                select(
                    InstallmentModel.id,
                    InstallmentModel.amount,
                    InstallmentModel.paid_amount,
                    InstallmentModel.due_date,
                    InstallmentModel.status,
                    InstallmentModel.version,
                ).where(InstallmentModel.status != InstallmentStatus.PAID)
            )
            for row in result.all():
                status = derive_status(row.amount, row.paid_amount, row.due_date, today)
                if status == row.status:
                    continue
                changed = await self.db.execute(
                    update(InstallmentModel)
                    .where(InstallmentModel.id == row.id, InstallmentModel.version == row.version)
                    .values(status=status, version=row.version + 1)
                    .execution_options(synchronize_session=False)
                )
                updated += changed.rowcount

        await self.log.log_info("sweep", "Overdue sweep finished", {"today": today, "updated": updated})
        return updated

    # ────────────── Listing / stats ──────────────
    def _filtered_query(self, filters: InstallmentFilters | None, actor=None):
        filters = filters or InstallmentFilters()
        query = (
            select(InstallmentModel)
            .join(OrderModel, OrderModel.id == InstallmentModel.order_id)
            .order_by(InstallmentModel.due_date, InstallmentModel.order_id, InstallmentModel.installment_number)
            .execution_options(populate_existing=True)
        )
        salesperson_id = filters.salesperson_id
        if actor is not None and actor.role == UserRole.SALES:
            salesperson_id = actor.id

        if filters.client_id is not None:
            query = query.where(OrderModel.client_id == filters.client_id)
        if salesperson_id is not None:
            query = query.where(OrderModel.salesperson_id == salesperson_id)
        if filters.status is not None:
            query = query.where(InstallmentModel.status == filters.status)
        if filters.due_date_from is not None:
            query = query.where(InstallmentModel.due_date >= filters.due_date_from)
        if filters.due_date_to is not None:
            query = query.where(InstallmentModel.due_date <= filters.due_date_to)
        if filters.min_amount is not None:
            query = query.where(InstallmentModel.amount >= filters.min_amount)
        if filters.max_amount is not None:
            query = query.where(InstallmentModel.amount <= filters.max_amount)
        return query

    async def list_installments(
        self, filters: InstallmentFilters | None = None, actor=None, today: date | None = None
    ) -> list[InstallmentModel]:
        await self.sweep_overdue(today)
        result = await self.db.execute(self._filtered_query(filters, actor))
        installments = result.scalars().all()
        await self.log.log_info("installment", f"{len(installments)} installments loaded")
        return installments

    async def read_stats(
        self, filters: InstallmentFilters | None = None, actor=None, today: date | None = None
    ) -> dict:
        installments = await self.list_installments(filters, actor, today)
        return compute_stats(installments)

