"""
Schemas package
"""
from orderflow.schemas.admin import (
    AdminCancelResponse,
    AdminOrderListResponse,
    AdminOrderStatusUpdate,
    AdminStatusUpdateResponse,
)
from orderflow.schemas.checkout import (
    CheckoutCalculateRequest,
    CheckoutQuoteResponse,
    CheckoutValidateRequest,
    CheckoutValidateResponse,
)
from orderflow.schemas.order import (
    OrderCancelRequest,
    OrderCancelResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
)
from orderflow.schemas.payment import (
    PaymentCreate,
    PaymentCreateResponse,
    PaymentStatusResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)

__all__ = [
    "AdminCancelResponse",
    "AdminOrderListResponse",
    "AdminOrderStatusUpdate",
    "AdminStatusUpdateResponse",
    "CheckoutCalculateRequest",
    "CheckoutQuoteResponse",
    "CheckoutValidateRequest",
    "CheckoutValidateResponse",
    "OrderCancelRequest",
    "OrderCancelResponse",
    "OrderCreate",
    "OrderListResponse",
    "OrderResponse",
    "PaymentCreate",
    "PaymentCreateResponse",
    "PaymentStatusResponse",
    "PaymentVerifyRequest",
    "PaymentVerifyResponse",
]
