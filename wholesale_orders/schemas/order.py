# wholesale_orders/schemas/order.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from wholesale_orders.models.enums import OrderStatus, PaymentType, CreditType
from wholesale_orders.schemas.installment import Installment


# ────────────── Items ──────────────
class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0, description="Units, positive integer")
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class OrderItemUpdate(BaseModel):
    quantity: Optional[int] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class OrderItem(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = {
        "from_attributes": True
    }


# ────────────── Order ──────────────
class OrderBase(BaseModel):
    client_id: Optional[int] = None
    observations: Optional[str] = None
    payment_type: Optional[PaymentType] = None
    credit_type: Optional[CreditType] = None
    installment_count: Optional[int] = Field(None, ge=1)


class OrderCreate(OrderBase):
    client_id: int
    payment_type: PaymentType = PaymentType.CASH
    salesperson_id: Optional[int] = None      # defaults to the creator
    items: List[OrderItemCreate] = []
    # credit orders: generate the schedule right away when given
    first_due_date: Optional[date] = None
    interval_days: Optional[int] = Field(None, ge=0)


class OrderUpdate(OrderBase):
    """Only the fields sent are changed."""
    version: Optional[int] = None


class Order(OrderBase):
    id: int
    client_id: int
    salesperson_id: int
    status: OrderStatus
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_type: Optional[PaymentType] = None
    invoice_number: Optional[str] = None
    created_by: int
    created_at: datetime
    updated_at: datetime
    version: int
    items: List[OrderItem] = []
    installments: List[Installment] = []

    model_config = {
        "from_attributes": True
    }


# ────────────── Status ──────────────
class OrderStatusChange(BaseModel):
    status: OrderStatus
    observation: Optional[str] = None
    version: Optional[int] = None


class OrderStatusLog(BaseModel):
    id: int
    order_id: int
    status: OrderStatus
    observation: Optional[str] = None
    has_observation: bool
    actor_id: int
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


# ────────────── Billing / schedule ──────────────
class InvoiceNumberUpdate(BaseModel):
    invoice_number: Optional[str] = Field(None, max_length=50)


class ScheduleCreate(BaseModel):
    first_due_date: date
    interval_days: Optional[int] = Field(None, ge=0, description="Days between installments (default 30)")
