# wholesale_orders/services/order.py

from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from fastapi import Request

from wholesale_orders.config import settings
from wholesale_orders.errors import NotFound, Forbidden, ValidationError
from wholesale_orders.models.enums import OrderStatus, PaymentType, UserRole
from wholesale_orders.models.order import Order as OrderModel, OrderItem as OrderItemModel
from wholesale_orders.models.status_log import OrderStatusLog as OrderStatusLogModel
from wholesale_orders.schemas.order import OrderCreate, OrderUpdate, OrderItemCreate, OrderItemUpdate
from wholesale_orders.services.installment import (
    replace_schedule,
    clear_schedule,
    current_interval,
    ensure_schedule_replaceable,
)
from wholesale_orders.services.money import compute_totals, line_subtotal, validate_line
from wholesale_orders.services.order_status import (
    check_transition,
    ensure_editable,
    ensure_can_modify,
    is_elevated,
)
from wholesale_orders.utils.db_service import transaction, ensure_version
from wholesale_orders.utils.log import Log


class OrderService:
    """
    Order item ledger and status state machine.

    Every item write recomputes the order totals from its items and, when the
    order already has an installment schedule, rebuilds that schedule from the
    new total in the same transaction.
    """

    def __init__(self, db: AsyncSession, log: Log):
        self.db = db
        self.log = log

    @classmethod
    def from_request(cls, request: Request) -> "OrderService":
        return cls(request.state.db, request.app.state.log)

    # ────────────── Helpers ──────────────
    async def _get_order(self, order_id: int) -> OrderModel:
        result = await self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        if db_order is None:
            await self.log.log_error("order", "Order not found", {"id": order_id})
            raise NotFound(f"Order {order_id} not found", {"id": order_id})
        return db_order

    def _find_item(self, order: OrderModel, item_id: int) -> OrderItemModel:
        for item in order.items:
            if item.id == item_id:
                return item
        raise NotFound(f"Item {item_id} not found in order {order.id}", {"id": order.id, "item_id": item_id})

    async def _recalculate(self, order: OrderModel, today: date | None = None) -> None:
        """Canonical totals from the current items, then the schedule if there is one."""
        totals = compute_totals(order.items)
        order.subtotal = totals.subtotal
        order.tax = totals.tax
        order.total = totals.total

        if order.installments:
            if order.total > 0:
                first_due_date = order.installments[0].due_date
                await replace_schedule(self.db, order, first_due_date, current_interval(order), today)
            else:
                await clear_schedule(self.db, order)

    def _append_log(self, order: OrderModel, status: OrderStatus, actor, observation: str | None = None):
        text = (observation or "").strip()
        self.db.add(OrderStatusLogModel(
            order_id=order.id,
            status=status,
            observation=text or None,
            has_observation=bool(text),
            actor_id=actor.id,
        ))

    def _check_credit_terms(self, order: OrderModel) -> None:
        if order.payment_type == PaymentType.CREDIT:
            count = order.installment_count
            if count is not None and not 1 <= count <= settings.MAX_INSTALLMENTS:
                raise ValidationError(
                    f"Installment count must be between 1 and {settings.MAX_INSTALLMENTS}",
                    {"installment_count": count},
                )
        else:
            # cash orders carry no credit terms
            order.credit_type = None
            order.installment_count = None

    # ────────────── Orders ──────────────
    async def create_order(self, order: OrderCreate, actor, today: date | None = None) -> OrderModel:
        """
        Creates a draft order with its items.

        Sales users always sell as themselves; elevated roles may assign the
        order to another salesperson. A credit order that comes with a first
        due date gets its installment schedule in the same transaction.
        """
        salesperson_id = actor.id
        if order.salesperson_id is not None and order.salesperson_id != actor.id:
            if not is_elevated(actor.role):
                raise Forbidden("Sales users can only create their own orders", {"salesperson_id": order.salesperson_id})
            salesperson_id = order.salesperson_id

        for item in order.items:
            validate_line(item.quantity, item.unit_price)

        async with transaction(self.db, self.log, "order", {"client_id": order.client_id}):
            db_order = OrderModel(
                client_id=order.client_id,
                salesperson_id=salesperson_id,
                status=OrderStatus.DRAFT,
                payment_type=order.payment_type,
                credit_type=order.credit_type,
                installment_count=order.installment_count,
                observations=order.observations,
                created_by=actor.id,
            )
            self._check_credit_terms(db_order)
            db_order.items = [
                OrderItemModel(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=line_subtotal(item.quantity, item.unit_price),
                )
                for item in order.items
            ]
            db_order.installments = []
            totals = compute_totals(db_order.items)
            db_order.subtotal, db_order.tax, db_order.total = totals.subtotal, totals.tax, totals.total

            self.db.add(db_order)
            await self.db.flush()
            self._append_log(db_order, OrderStatus.DRAFT, actor)

            if order.first_due_date is not None:
                await replace_schedule(self.db, db_order, order.first_due_date, order.interval_days, today)

        await self.log.log_info("order", "Order created", {"id": db_order.id, "total": db_order.total})
        return await self._get_order(db_order.id)

    async def read_orders(
        self,
        actor=None,
        status: OrderStatus | None = None,
        client_id: int | None = None,
        salesperson_id: int | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        has_invoice: bool | None = None,
        invoice_number: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[OrderModel]:
        """
        Orders, newest first. Sales users only see the orders they sell.

        ``has_invoice`` splits billed from unbilled orders; ``invoice_number``
        matches any part of the recorded number.
        """
        if actor is not None and actor.role == UserRole.SALES:
            salesperson_id = actor.id

        query = select(OrderModel).order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        if status is not None:
            query = query.where(OrderModel.status == status)
        if client_id is not None:
            query = query.where(OrderModel.client_id == client_id)
        if salesperson_id is not None:
            query = query.where(OrderModel.salesperson_id == salesperson_id)
        if created_from is not None:
            query = query.where(OrderModel.created_at >= created_from)
        if created_to is not None:
            query = query.where(OrderModel.created_at <= created_to)
        if has_invoice is True:
            query = query.where(OrderModel.invoice_number.isnot(None))
        elif has_invoice is False:
            query = query.where(OrderModel.invoice_number.is_(None))
        if invoice_number:
            query = query.where(OrderModel.invoice_number.ilike(f"%{invoice_number.strip()}%"))

        result = await self.db.execute(
            query.offset(skip).limit(limit).execution_options(populate_existing=True)
        )
        orders = result.scalars().all()

        await self.log.log_info("order", f"{len(orders)} orders loaded")
        return orders

    async def read_order(self, order_id: int, actor=None) -> OrderModel:
        db_order = await self._get_order(order_id)
        if actor is not None and actor.role == UserRole.SALES and db_order.salesperson_id != actor.id:
            raise NotFound(f"Order {order_id} not found", {"id": order_id})
        return db_order

    async def update_order(self, order_id: int, order_update: OrderUpdate, actor, today: date | None = None) -> OrderModel:
        """
        Changes header fields and credit terms of an editable order.

        Changing the credit terms rebuilds the schedule (or drops it when the
        order becomes a cash sale), which is refused once a payment exists.
        """
        changes = order_update.model_dump(exclude_unset=True)
        expected_version = changes.pop("version", None)

        async with transaction(self.db, self.log, "order", {"id": order_id}):
            db_order = await self._get_order(order_id)
            ensure_version(db_order, expected_version)
            ensure_editable(db_order)
            ensure_can_modify(actor, db_order)

            credit_fields = {"payment_type", "credit_type", "installment_count"}
            terms_changed = any(
                key in credit_fields and getattr(db_order, key) != value for key, value in changes.items()
            )
            if terms_changed:
                ensure_schedule_replaceable(db_order)

            for key, value in changes.items():
                if key == "client_id" and value is None:
                    raise ValidationError("Client is required", {"id": order_id})
                setattr(db_order, key, value)
            self._check_credit_terms(db_order)

            if terms_changed and db_order.installments:
                if db_order.payment_type == PaymentType.CREDIT and db_order.installment_count:
                    first_due_date = db_order.installments[0].due_date
                    await replace_schedule(self.db, db_order, first_due_date, current_interval(db_order), today)
                else:
                    await clear_schedule(self.db, db_order)

        await self.log.log_info("order", "Order updated", {"id": order_id, "fields": sorted(changes)})
        return await self._get_order(order_id)

    async def set_invoice_number(self, order_id: int, invoice_number: str | None, actor) -> OrderModel:
        """Billing reference; recorded by elevated roles at any status."""
        if not is_elevated(actor.role):
            raise Forbidden("Only administrators can record invoice numbers", {"id": order_id})

        async with transaction(self.db, self.log, "order", {"id": order_id}):
            db_order = await self._get_order(order_id)
            db_order.invoice_number = (invoice_number or "").strip() or None

        await self.log.log_info("order", "Invoice number saved", {"id": order_id, "invoice_number": db_order.invoice_number})
        return db_order

    # ────────────── Items ──────────────
    async def add_item(self, order_id: int, item: OrderItemCreate, actor, today: date | None = None) -> OrderModel:
        validate_line(item.quantity, item.unit_price)

        async with transaction(self.db, self.log, "order_item", {"id": order_id}):
            db_order = await self._get_order(order_id)
            ensure_editable(db_order)
            ensure_can_modify(actor, db_order)
            ensure_schedule_replaceable(db_order)

            db_order.items.append(OrderItemModel(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=line_subtotal(item.quantity, item.unit_price),
            ))
            await self._recalculate(db_order, today)

        await self.log.log_info("order_item", "Item added", {
            "id": order_id, "product_id": item.product_id, "total": db_order.total,
        })
        return await self._get_order(order_id)

    async def update_item(
        self, order_id: int, item_id: int, item_update: OrderItemUpdate, actor, today: date | None = None
    ) -> OrderModel:
        async with transaction(self.db, self.log, "order_item", {"id": order_id, "item_id": item_id}):
            db_order = await self._get_order(order_id)
            ensure_editable(db_order)
            ensure_can_modify(actor, db_order)
            ensure_schedule_replaceable(db_order)

            db_item = self._find_item(db_order, item_id)
            quantity = db_item.quantity if item_update.quantity is None else item_update.quantity
            unit_price = db_item.unit_price if item_update.unit_price is None else item_update.unit_price

            db_item.subtotal = line_subtotal(quantity, unit_price)
            db_item.quantity = quantity
            db_item.unit_price = unit_price
            await self._recalculate(db_order, today)

        await self.log.log_info("order_item", "Item updated", {
            "id": order_id, "item_id": item_id, "total": db_order.total,
        })
        return await self._get_order(order_id)

    async def remove_item(self, order_id: int, item_id: int, actor, today: date | None = None) -> OrderModel:
        async with transaction(self.db, self.log, "order_item", {"id": order_id, "item_id": item_id}):
            db_order = await self._get_order(order_id)
            ensure_editable(db_order)
            ensure_can_modify(actor, db_order)
            ensure_schedule_replaceable(db_order)

            db_order.items.remove(self._find_item(db_order, item_id))
            await self._recalculate(db_order, today)

        await self.log.log_info("order_item", "Item removed", {
            "id": order_id, "item_id": item_id, "total": db_order.total,
        })
        return await self._get_order(order_id)

    # ────────────── Schedule ──────────────
    async def generate_schedule(
        self,
        order_id: int,
        first_due_date: date,
        interval_days: int | None = None,
        actor=None,
        today: date | None = None,
    ) -> OrderModel:
        """(Re)generates the installment schedule of an editable credit order."""
        async with transaction(self.db, self.log, "installment", {"id": order_id}):
            db_order = await self._get_order(order_id)
            ensure_editable(db_order)
            if actor is not None:
                ensure_can_modify(actor, db_order)
            await replace_schedule(self.db, db_order, first_due_date, interval_days, today)

        await self.log.log_info("installment", "Schedule generated", {
            "id": order_id,
            "installments": db_order.installment_count,
            "total": db_order.total,
            "first_due_date": first_due_date,
        })
        return await self._get_order(order_id)

    # ────────────── Status ──────────────
    async def change_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        actor,
        observation: str | None = None,
        expected_version: int | None = None,
    ) -> OrderModel:
        """
        Moves the order to ``new_status`` and appends one status log row.

        Both writes happen in one transaction; a rejected transition writes
        neither.
        """
        try:
            new_status = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown order status: {new_status}", {"status": new_status})

        async with transaction(self.db, self.log, "order_status", {"id": order_id, "status": new_status}):
            db_order = await self._get_order(order_id)
            ensure_can_modify(actor, db_order)
            ensure_version(db_order, expected_version)
            previous = db_order.status
            check_transition(actor.role, previous, new_status)

            db_order.status = new_status
            self._append_log(db_order, new_status, actor, observation)

        await self.log.log_info("order_status", "Status changed", {
            "id": order_id, "from": previous, "to": new_status, "actor_id": actor.id,
        })
        return await self._get_order(order_id)

    async def read_status_log(self, order_id: int, actor=None) -> list[OrderStatusLogModel]:
        await self.read_order(order_id, actor)
        result = await self.db.execute(
            select(OrderStatusLogModel)
            .where(OrderStatusLogModel.order_id == order_id)
            .order_by(OrderStatusLogModel.created_at, OrderStatusLogModel.id)
        )
        return result.scalars().all()
