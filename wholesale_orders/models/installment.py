# wholesale_orders/models/installment.py

from decimal import Decimal

from sqlalchemy import Column, Integer, Text, Date, DateTime, Numeric, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from wholesale_orders.utils.database import Base
from wholesale_orders.models.enums import InstallmentStatus, enum_values
from wholesale_orders.models.order import utcnow


class Installment(Base):
    """Payment document: one scheduled partial payment of a credit order."""

    __tablename__ = "order_installments"
    __table_args__ = (
        UniqueConstraint("order_id", "installment_number", name="uq_installment_order_number"),
    )

    id = Column(Integer, primary_key=True, index=True)

    order_id           = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)                   # 1..N
    amount             = Column(Numeric(12, 2), nullable=False)
    due_date           = Column(Date, nullable=False, index=True)
    days_due           = Column(Integer, nullable=False, default=0)        # free-editable, informational
    status             = Column(
        Enum(InstallmentStatus, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=InstallmentStatus.PENDING,
        index=True,
    )
    paid_amount  = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    payment_date = Column(Date, nullable=True)
    notes        = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    version = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="installments")

    __mapper_args__ = {"version_id_col": version}
