"""
Order API endpoints
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from orderflow.api.deps import get_current_user, get_order_service
from orderflow.schemas.identity import CurrentUser
from orderflow.schemas.order import (
    OrderCancelRequest,
    OrderCancelResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
)
from orderflow.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED, summary="Create order")
def create_order(
    order_data: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Create a new PENDING order

    Process:
    1. Validate the shipping address belongs to the customer
    2. Price each item from the catalog (a supplied price must match)
    3. Check stock availability
    4. Apply the coupon and calculate totals
    5. Save the order with its tracking entry

    - **shippingAddressId**: Saved address ID (required)
    - **paymentMethod**: Payment method (default RAZORPAY)
    - **couponCode**: Coupon code (optional)
    - **items**: `[{productId, quantity, price?}]`, at least one
    """
    return service.create_order(user, order_data)


@router.get("", response_model=OrderListResponse, summary="Get my orders")
def get_orders(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Orders per page"),
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Retrieve the caller's orders, newest first"""
    return service.list_orders(user, page=page, limit=limit)


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order by ID")
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve a specific order by ID

    Customers only see their own orders; admins see all.
    """
    return service.get_order(user, order_id)


@router.post("/{order_id}/cancel", response_model=OrderCancelResponse, summary="Cancel order")
def cancel_order(
    order_id: int,
    cancel_data: Optional[OrderCancelRequest] = Body(None),
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Cancel a CONFIRMED order within the cancellation window

    A cancellation fee is deducted from the captured payment; the rest is
    refunded.

    - **reason**: Cancellation reason (optional)
    """
    reason = cancel_data.reason if cancel_data else None
    return service.cancel_order(user, order_id, reason=reason)
