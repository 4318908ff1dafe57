"""
SQLAlchemy Database Models

Users (with their cart), catalog food items and placed orders.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, DateTime, Text, Enum, Boolean, JSON, ForeignKey

from food_api.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    """
    Fulfilment workflow.

    Checkout starts at FOOD_PROCESSING; DELIVERED is terminal.
    PAYMENT_FAILED is only used by the mark_failed payment failure policy.
    """
    FOOD_PROCESSING = "Food Processing"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    PAYMENT_FAILED = "Payment Failed"


class User(Base):
    """
    Registered customer or admin.

    cart_data maps food item id -> quantity. Entries are always >= 1;
    an item whose quantity drops to zero is removed from the mapping.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    cart_data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User {self.id} - {self.email} - {self.role.value}>"


class FoodItem(Base):
    """Catalog entry. Created and removed by admins, never edited."""
    __tablename__ = "food_items"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    image = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<FoodItem {self.id} - {self.name} - {self.price:.2f}>"


class Order(Base):
    """
    Placed order.

    items is a snapshot taken at checkout: a list of
    {"itemId", "name", "price", "quantity"} so later catalog changes never
    alter the amount of an existing order.
    """
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    items = Column(JSON, nullable=False)
    amount = Column(Float, nullable=False)
    address = Column(JSON, nullable=False)

    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.FOOD_PROCESSING,
        nullable=False,
        index=True
    )
    payment = Column(Boolean, default=False, nullable=False)
    payment_session_id = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    def __repr__(self):
        return f"<Order #{self.id} - {self.user_id} - {self.status.value}>"
