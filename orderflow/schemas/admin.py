"""
Pydantic schemas for the admin order API
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from orderflow.models.order import OrderStatus
from orderflow.schemas.base import CamelModel, Money
from orderflow.schemas.order import OrderItemResponse, PaymentSummary, TrackingResponse


class AdminOrderStatusUpdate(CamelModel):
    """Schema for an admin status change"""
    order_id: int = Field(..., gt=0)
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=128)
    notes: Optional[str] = Field(None, max_length=1000)


class AdminOrderSummary(CamelModel):
    id: int
    order_number: str
    status: OrderStatus
    total_amount: Money
    item_count: int
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    shipping_address: Dict[str, Any]
    tracking_number: Optional[str] = None
    payments: List[PaymentSummary]
    latest_tracking: Optional[TrackingResponse] = None
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


class OrderStatistics(CamelModel):
    pending: int = 0
    confirmed: int = 0
    processing: int = 0
    shipped: int = 0
    out_for_delivery: int = 0
    delivered: int = 0
    cancelled: int = 0
    returned: int = 0
    refunded: int = 0
    total_revenue: Money
    today_orders: int


class AdminOrderListResponse(CamelModel):
    orders: List[AdminOrderSummary]
    pagination: Pagination
    statistics: OrderStatistics


class AdminOrderRef(CamelModel):
    id: int
    order_number: str
    status: OrderStatus
    tracking_number: Optional[str] = None
    updated_at: datetime


class AdminStatusUpdateResponse(CamelModel):
    message: str
    order: AdminOrderRef
    tracking: TrackingResponse


class AdminCancelResponse(CamelModel):
    message: str
    order_id: int
    reason: str
    tracking: TrackingResponse
