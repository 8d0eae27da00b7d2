"""
Payment API endpoints
"""
from fastapi import APIRouter, Depends

from orderflow.api.deps import get_current_user, get_payment_service
from orderflow.schemas.identity import CurrentUser
from orderflow.schemas.payment import (
    PaymentCreate,
    PaymentCreateResponse,
    PaymentStatusResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from orderflow.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/create", response_model=PaymentCreateResponse, summary="Create payment intent")
async def create_payment(
    payment_data: PaymentCreate,
    user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service)
):
    """
    Create a gateway order for a PENDING order

    Returns what the client needs to open the gateway checkout. When the
    gateway is unreachable the response is 503 and the order stays
    PENDING, so the customer can simply try again.

    - **orderId**: Order ID (required)
    - **amount**: Order total (optional, must match)
    - **paymentMethod**: Payment method (default RAZORPAY)
    """
    return await service.create_intent(user, payment_data)


@router.post("/verify", response_model=PaymentVerifyResponse, summary="Verify payment callback")
def verify_payment(
    callback: PaymentVerifyRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service)
):
    """
    Verify the gateway's signed callback and confirm the order

    Replays of an already verified callback succeed without side effects.

    - **razorpay_order_id** / **gatewayOrderId**: Gateway order ID
    - **razorpay_payment_id** / **gatewayPaymentId**: Gateway payment ID
    - **razorpay_signature** / **signature**: HMAC signature
    - **orderId**: Local order ID (optional)
    """
    return service.verify_callback(user, callback)


@router.get("/{payment_id}", response_model=PaymentStatusResponse, summary="Get payment status")
def get_payment(
    payment_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service)
):
    """
    Get a payment attempt with a summary of its order

    Customers only see their own payments; admins see all.
    """
    return service.get_payment(user, payment_id)
