"""
Checkout API endpoints
"""
from fastapi import APIRouter, Depends

from orderflow.api.deps import get_current_user, get_order_service
from orderflow.schemas.checkout import (
    CheckoutCalculateRequest,
    CheckoutQuoteResponse,
    CheckoutValidateRequest,
    CheckoutValidateResponse,
)
from orderflow.schemas.identity import CurrentUser
from orderflow.services.order_service import OrderService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/calculate", response_model=CheckoutQuoteResponse, summary="Price a cart")
def calculate_totals(
    request: CheckoutCalculateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Calculate subtotal, shipping, tax, coupon discount and total for a cart

    Nothing is reserved or persisted.

    - **items**: `[{productId, quantity}]`, at least one
    - **couponCode**: Coupon code (optional)
    """
    return service.quote(request)


@router.post("/validate", response_model=CheckoutValidateResponse, summary="Validate a cart")
def validate_cart(
    request: CheckoutValidateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Check every cart line for an active product and enough sellable stock

    - **items**: `[{productId, quantity}]`, at least one
    """
    return service.validate_cart(request)
