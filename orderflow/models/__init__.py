"""
Models package
"""
from orderflow.models.catalog import Address, Product
from orderflow.models.coupon import Coupon, CouponType
from orderflow.models.inventory import Inventory
from orderflow.models.order import Order, OrderItem, OrderStatus, OrderTracking
from orderflow.models.payment import Payment, PaymentStatus

__all__ = [
    "Address",
    "Product",
    "Coupon",
    "CouponType",
    "Inventory",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderTracking",
    "Payment",
    "PaymentStatus",
]
