# wholesale_orders/routes/order.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from wholesale_orders.models.enums import OrderStatus
from wholesale_orders.schemas.order import (
    Order,
    OrderCreate,
    OrderUpdate,
    OrderItemCreate,
    OrderItemUpdate,
    OrderStatusChange,
    OrderStatusLog,
    InvoiceNumberUpdate,
    ScheduleCreate,
)
from wholesale_orders.services.order import OrderService
from wholesale_orders.routes.auth import get_current_user

router = APIRouter()

COMMON_RESPONSES = {
    401: {"description": "Missing or invalid token"},
    403: {"description": "Role or ownership does not allow this operation"},
    404: {"description": "Order not found"},
    500: {"description": "Storage failure"},
}


# ────────────── CREATE ──────────────
@router.post(
    "/",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="Create an order",
    response_description="The new draft order with totals (and schedule for credit orders)",
    responses={
        **COMMON_RESPONSES,
        201: {"description": "Order created"},
        422: {"description": "Invalid items or credit terms"},
    },
)
async def create_order(
    request: Request,
    order: OrderCreate,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).create_order(order, current_user)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Failed to create order: {e}")
        raise


# ────────────── READ ALL ──────────────
@router.get(
    "/",
    response_model=List[Order],
    status_code=status.HTTP_200_OK,
    summary="List orders",
    response_description="Orders, newest first; sales users only get their own",
    responses=COMMON_RESPONSES,
)
async def read_orders(
    request: Request,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    client_id: Optional[int] = None,
    salesperson_id: Optional[int] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    has_invoice: Optional[bool] = None,
    invoice_number: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).read_orders(
            current_user,
            status=status_filter,
            client_id=client_id,
            salesperson_id=salesperson_id,
            created_from=created_from,
            created_to=created_to,
            has_invoice=has_invoice,
            invoice_number=invoice_number,
            skip=skip,
            limit=limit,
        )
    except Exception as e:
        await request.app.state.log.log_error("order", f"Failed to list orders: {e}")
        raise


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Get an order",
    response_description="Order with items and installments",
    responses=COMMON_RESPONSES,
)
async def read_order(
    id: int,
    request: Request,
    current_user=Depends(get_current_user),
):
    return await OrderService.from_request(request).read_order(id, current_user)


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Update order header and credit terms",
    responses={
        **COMMON_RESPONSES,
        409: {"description": "Order not editable, has payments, or was modified concurrently"},
        422: {"description": "Invalid data or schedule parameters"},
    },
)
async def update_order(
    id: int,
    order_update: OrderUpdate,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).update_order(id, order_update, current_user)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Failed to update order: {e}", {"id": id})
        raise


# ────────────── INVOICE NUMBER ──────────────
@router.put(
    "/{id}/invoice",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Record the invoice number of an order",
    responses=COMMON_RESPONSES,
)
async def set_invoice_number(
    id: int,
    invoice: InvoiceNumberUpdate,
    request: Request,
    current_user=Depends(get_current_user),
):
    return await OrderService.from_request(request).set_invoice_number(id, invoice.invoice_number, current_user)


# ────────────── ITEMS ──────────────
@router.post(
    "/{id}/items",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="Add an item",
    response_description="Order with recomputed totals",
    responses={
        **COMMON_RESPONSES,
        409: {"description": "Order not editable"},
        422: {"description": "Invalid quantity or price"},
    },
)
async def add_item(
    id: int,
    item: OrderItemCreate,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).add_item(id, item, current_user)
    except Exception as e:
        await request.app.state.log.log_error("order_item", f"Failed to add item: {e}", {"id": id})
        raise


@router.put(
    "/{id}/items/{item_id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Change quantity or price of an item",
    responses={
        **COMMON_RESPONSES,
        409: {"description": "Order not editable"},
        422: {"description": "Invalid quantity or price"},
    },
)
async def update_item(
    id: int,
    item_id: int,
    item_update: OrderItemUpdate,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).update_item(id, item_id, item_update, current_user)
    except Exception as e:
        await request.app.state.log.log_error("order_item", f"Failed to update item: {e}", {"id": id, "item_id": item_id})
        raise


@router.delete(
    "/{id}/items/{item_id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Remove an item",
    responses={
        **COMMON_RESPONSES,
        409: {"description": "Order not editable"},
    },
)
async def remove_item(
    id: int,
    item_id: int,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).remove_item(id, item_id, current_user)
    except Exception as e:
        await request.app.state.log.log_error("order_item", f"Failed to remove item: {e}", {"id": id, "item_id": item_id})
        raise


# ────────────── SCHEDULE ──────────────
@router.post(
    "/{id}/schedule",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="Generate the installment schedule of a credit order",
    responses={
        **COMMON_RESPONSES,
        409: {"description": "Order not editable or already has payments"},
        422: {"description": "Not a credit order, or invalid installment count"},
    },
)
async def generate_schedule(
    id: int,
    schedule: ScheduleCreate,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).generate_schedule(
            id, schedule.first_due_date, schedule.interval_days, current_user
        )
    except Exception as e:
        await request.app.state.log.log_error("installment", f"Failed to generate schedule: {e}", {"id": id})
        raise


# ────────────── STATUS ──────────────
@router.post(
    "/{id}/status",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Change order status",
    response_description="Order in its new status; one log row is appended",
    responses={
        **COMMON_RESPONSES,
        409: {"description": "Same status, or order modified concurrently"},
    },
)
async def change_status(
    id: int,
    change: OrderStatusChange,
    request: Request,
    current_user=Depends(get_current_user),
):
    try:
        return await OrderService.from_request(request).change_status(
            id, change.status, current_user, change.observation, change.version
        )
    except Exception as e:
        await request.app.state.log.log_error("order_status", f"Failed to change status: {e}", {"id": id})
        raise


@router.get(
    "/{id}/status-log",
    response_model=List[OrderStatusLog],
    status_code=status.HTTP_200_OK,
    summary="Status history of an order",
    responses=COMMON_RESPONSES,
)
async def read_status_log(
    id: int,
    request: Request,
    current_user=Depends(get_current_user),
):
    return await OrderService.from_request(request).read_status_log(id, current_user)
