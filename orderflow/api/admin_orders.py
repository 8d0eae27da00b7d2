"""
Admin order management endpoints
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from orderflow.api.deps import get_admin_service, require_admin
from orderflow.models.order import OrderStatus
from orderflow.models.payment import PaymentStatus
from orderflow.schemas.admin import (
    AdminCancelResponse,
    AdminOrderListResponse,
    AdminOrderStatusUpdate,
    AdminStatusUpdateResponse,
)
from orderflow.services.admin_service import AdminOrderService

router = APIRouter(prefix="/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("", response_model=AdminOrderListResponse, summary="List orders")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    search: Optional[str] = Query(None, description="Order number, customer name or email"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    payment_status: Optional[PaymentStatus] = Query(None, alias="paymentStatus"),
    service: AdminOrderService = Depends(get_admin_service)
):
    """
    Paginated, filterable order list with statistics

    Statistics: count per status, revenue over confirmed-and-later
    statuses, orders placed in the last 24 hours.
    """
    return service.list_orders(
        page=page,
        limit=limit,
        status=status,
        search=search,
        start_date=start_date,
        end_date=end_date,
        payment_status=payment_status,
    )


@router.put("", response_model=AdminStatusUpdateResponse, summary="Update order status")
def update_order_status(
    update: AdminOrderStatusUpdate,
    service: AdminOrderService = Depends(get_admin_service)
):
    """
    Move an order along the status graph

    Invalid transitions return 400 with the allowed next statuses.

    - **orderId**: Order ID
    - **status**: Target status
    - **trackingNumber**: Courier tracking number (optional)
    - **notes**: Note for the tracking entry (optional)
    """
    return service.update_status(
        update.order_id,
        update.status,
        tracking_number=update.tracking_number,
        notes=update.notes,
    )


@router.delete("", response_model=AdminCancelResponse, summary="Cancel order")
def cancel_order(
    order_id: int = Query(..., alias="orderId", gt=0),
    reason: Optional[str] = Query(None),
    service: AdminOrderService = Depends(get_admin_service)
):
    """
    Cancel an order that has not shipped yet (PENDING, CONFIRMED, PROCESSING)
    """
    return service.cancel_order(order_id, reason=reason)
