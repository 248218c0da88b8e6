# wholesale_orders/models/enums.py

from enum import Enum


class OrderStatus(str, Enum):
    DRAFT = "draft"
    TAKEN = "taken"
    CONFIRMED = "confirmed"
    IN_PREPARATION = "in_preparation"
    DISPATCHED = "dispatched"


class PaymentType(str, Enum):
    CASH = "cash"
    CREDIT = "credit"


class CreditType(str, Enum):
    INVOICE = "invoice"     # factura
    DRAFT = "draft"         # letras


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    OVERDUE = "overdue"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    SALES = "sales"


# statuses in which items and the installment schedule may still change
EDITABLE_STATUSES = frozenset({OrderStatus.DRAFT, OrderStatus.TAKEN})


def enum_values(enum_cls):
    return [member.value for member in enum_cls]
