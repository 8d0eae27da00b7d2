"""
Pydantic schemas for order request/response validation
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from orderflow.models.order import OrderStatus
from orderflow.models.payment import PaymentStatus
from orderflow.schemas.base import CamelModel, Money


class OrderItemCreate(CamelModel):
    """Schema for one requested order line"""
    product_id: int = Field(..., gt=0, description="Product ID")
    quantity: int = Field(..., gt=0, description="Quantity to order")
    price: Optional[Decimal] = Field(None, ge=0, description="Price the customer saw; must match the catalog")


class OrderCreate(CamelModel):
    """Schema for creating a new order"""
    shipping_address_id: int = Field(..., gt=0, description="Saved address of the customer")
    payment_method: str = Field("RAZORPAY", min_length=1, max_length=50)
    coupon_code: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = Field(None, max_length=1000)
    emi_plan_id: Optional[str] = Field(None, max_length=64)
    items: List[OrderItemCreate] = Field(..., min_length=1, description="At least one item required")


class OrderItemResponse(CamelModel):
    """Schema for order item response"""
    id: int
    product_id: int
    product_name: str
    quantity: int
    price: Money
    mrp: Money


class TrackingResponse(CamelModel):
    """Schema for one tracking entry"""
    id: int
    status: OrderStatus
    message: Optional[str] = None
    location: Optional[str] = None
    tracking_number: Optional[str] = None
    created_at: datetime


class PaymentSummary(CamelModel):
    """Schema for a payment attempt"""
    id: int
    amount: Money
    currency: str
    method: str
    status: PaymentStatus
    transaction_id: Optional[str] = None
    refund_amount: Optional[Money] = None
    created_at: datetime


class OrderResponse(CamelModel):
    """Schema for order response"""
    id: int
    order_number: str
    user_id: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    status: OrderStatus
    payment_method: str
    subtotal: Money
    shipping_cost: Money
    tax: Money
    discount: Money
    total_amount: Money
    total_savings: Money
    coupon_code: Optional[str] = None
    shipping_address: Dict[str, Any]
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    emi_plan_id: Optional[str] = None
    items: List[OrderItemResponse]
    tracking: List[TrackingResponse]
    payments: List[PaymentSummary]
    created_at: datetime
    updated_at: datetime


class OrderListResponse(CamelModel):
    """Schema for list of orders response"""
    orders: List[OrderResponse]
    total: int
    page: int
    limit: int


class OrderCancelRequest(CamelModel):
    """Schema for a customer cancellation"""
    reason: Optional[str] = Field(None, max_length=500)


class OrderCancelResponse(CamelModel):
    """Schema for cancellation outcome"""
    message: str
    order: OrderResponse
    refund_amount: Money
    deduction_rate: Money
