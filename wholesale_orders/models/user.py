# wholesale_orders/models/user.py

from sqlalchemy import Column, Integer, String, DateTime, Enum
from wholesale_orders.utils.database import Base
from wholesale_orders.models.enums import UserRole, enum_values
from wholesale_orders.models.order import utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    login = Column(String, unique=True, nullable=False)   # login
    password = Column(String, nullable=True)              # password hash
    role = Column(
        Enum(UserRole, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=UserRole.SALES,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
