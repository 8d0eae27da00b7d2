"""
SQLAlchemy Order models
"""
import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum as SQLEnum, ForeignKey,
    Integer, JSON, Numeric, String, Text,
)
from sqlalchemy.orm import relationship

from orderflow.database import Base
from orderflow.utils import utcnow


class OrderStatus(str, enum.Enum):
    """Order status enum"""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


order_status_type = SQLEnum(OrderStatus, name="order_status")


class Order(Base):
    """Order database model"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_number = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    # Denormalized for admin search and notifications
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True, index=True)

    status = Column(order_status_type, nullable=False, default=OrderStatus.PENDING, index=True)
    payment_method = Column(String(50), nullable=False)

    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    total_savings = Column(Numeric(12, 2), nullable=False, default=0)
    coupon_code = Column(String(64), nullable=True)

    # Snapshot of the address at order time, never a live reference
    shipping_address = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)
    tracking_number = Column(String(128), nullable=True)
    emi_plan_id = Column(String(64), nullable=True)

    # True while this order holds an inventory reservation
    inventory_reserved = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    tracking = relationship("OrderTracking", back_populates="order", cascade="all, delete-orphan", order_by="OrderTracking.id")
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan", order_by="Payment.id")

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_total_non_negative"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status={self.status}, total={self.total_amount})>"


class OrderItem(Base):
    """Order line with prices snapshotted at order time"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    mrp = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_item_quantity_positive"),
    )

    def __repr__(self):
        return f"<OrderItem(id={self.id}, product_id={self.product_id}, qty={self.quantity})>"


class OrderTracking(Base):
    """Append-only audit row for one status transition"""

    __tablename__ = "order_tracking"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(order_status_type, nullable=False)
    message = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    tracking_number = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    order = relationship("Order", back_populates="tracking")

    def __repr__(self):
        return f"<OrderTracking(order_id={self.order_id}, status={self.status})>"
