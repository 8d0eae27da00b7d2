"""
Pydantic schemas for payment intents and gateway callbacks
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, Field

from orderflow.models.order import OrderStatus
from orderflow.schemas.base import CamelModel, Money
from orderflow.schemas.order import OrderResponse, PaymentSummary


class PaymentCreate(CamelModel):
    """Schema for requesting a gateway payment intent"""
    order_id: int = Field(..., gt=0)
    amount: Optional[Decimal] = Field(None, gt=0, description="Must equal the order total when given")
    payment_method: str = Field("RAZORPAY", min_length=1, max_length=50)


class GatewayIntent(CamelModel):
    """What the client needs to open the gateway checkout"""
    order_id: str
    amount: int = Field(..., description="Amount in minor units")
    currency: str
    key_id: str


class PaymentCreateResponse(CamelModel):
    message: str
    payment: PaymentSummary
    gateway: GatewayIntent


class PaymentVerifyRequest(CamelModel):
    """Signed gateway callback"""
    gateway_order_id: str = Field(
        ..., min_length=1,
        validation_alias=AliasChoices("razorpay_order_id", "gatewayOrderId", "gateway_order_id")
    )
    gateway_payment_id: str = Field(
        ..., min_length=1,
        validation_alias=AliasChoices("razorpay_payment_id", "gatewayPaymentId", "gateway_payment_id")
    )
    signature: str = Field(
        ..., min_length=1,
        validation_alias=AliasChoices("razorpay_signature", "signature")
    )
    order_id: Optional[int] = Field(None, validation_alias=AliasChoices("orderId", "order_id"))


class PaymentVerifyResponse(CamelModel):
    verified: bool
    already_processed: bool
    order: OrderResponse


class PaymentDetail(PaymentSummary):
    gateway_order_id: Optional[str] = None
    updated_at: datetime


class PaymentOrderSummary(CamelModel):
    id: int
    order_number: str
    status: OrderStatus
    total_amount: Money


class PaymentStatusResponse(CamelModel):
    """Schema for a payment and the order it pays for"""
    payment: PaymentDetail
    order: PaymentOrderSummary
