# wholesale_orders/models/order.py

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship
from wholesale_orders.utils.database import Base
from wholesale_orders.models.enums import OrderStatus, PaymentType, CreditType, enum_values


def utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    client_id      = Column(Integer, nullable=False, index=True)           # client reference
    salesperson_id = Column(Integer, nullable=False, index=True)           # salesperson reference
    status         = Column(
        Enum(OrderStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=OrderStatus.DRAFT,
        index=True,
    )

    subtotal = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax      = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))   # IGV
    total    = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    payment_type      = Column(Enum(PaymentType, native_enum=False, length=10, values_callable=enum_values), nullable=True)
    credit_type       = Column(Enum(CreditType, native_enum=False, length=10, values_callable=enum_values), nullable=True)
    installment_count = Column(Integer, nullable=True)

    observations   = Column(Text, nullable=True)
    invoice_number = Column(String(50), nullable=True)                     # billing reference

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    version = Column(Integer, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )
    installments = relationship(
        "Installment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Installment.installment_number",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)

    order_id   = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)                           # product reference
    quantity   = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal   = Column(Numeric(12, 2), nullable=False)                    # quantity * unit_price

    order = relationship("Order", back_populates="items")
