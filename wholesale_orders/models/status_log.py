# wholesale_orders/models/status_log.py

from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Enum
from wholesale_orders.utils.database import Base
from wholesale_orders.models.enums import OrderStatus, enum_values
from wholesale_orders.models.order import utcnow


class OrderStatusLog(Base):
    """Append-only: one row per successful status transition."""

    __tablename__ = "order_status_logs"

    id = Column(Integer, primary_key=True, index=True)

    order_id        = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status          = Column(Enum(OrderStatus, native_enum=False, length=20, values_callable=enum_values), nullable=False)
    observation     = Column(Text, nullable=True)
    has_observation = Column(Boolean, nullable=False, default=False)
    actor_id        = Column(Integer, nullable=False)
    created_at      = Column(DateTime(timezone=True), nullable=False, default=utcnow)
