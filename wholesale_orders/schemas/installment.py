# wholesale_orders/schemas/installment.py

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from wholesale_orders.models.enums import InstallmentStatus


class Installment(BaseModel):
    id: int
    order_id: int
    installment_number: int
    amount: Decimal
    due_date: date
    days_due: int
    status: InstallmentStatus
    paid_amount: Decimal
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int

    model_config = {
        "from_attributes": True
    }


class PaymentRegister(BaseModel):
    paid_amount: Decimal = Field(..., max_digits=12, decimal_places=2, description="Cumulative amount paid")
    payment_date: date
    notes: Optional[str] = None
    version: Optional[int] = None


class InstallmentTermsUpdate(BaseModel):
    due_date: Optional[date] = None
    days_due: Optional[int] = Field(None, ge=0)


class InstallmentFilters(BaseModel):
    client_id: Optional[int] = None
    salesperson_id: Optional[int] = None
    status: Optional[InstallmentStatus] = None
    due_date_from: Optional[date] = None
    due_date_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None


class ReceivablesStats(BaseModel):
    total_pending: Decimal
    total_overdue: Decimal
    total_partially_paid: Decimal
    total_paid: Decimal
    count_pending: int
    count_overdue: int
    count_partially_paid: int
    count_paid: int


class SweepResult(BaseModel):
    updated: int
