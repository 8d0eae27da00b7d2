"""
Payment Service - gateway intents and signed callback verification
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from orderflow.config import settings
from orderflow.database import UnitOfWork
from orderflow.exceptions import (
    InvalidOrderState,
    OrderNotFound,
    OrderValidationError,
    PaymentNotFound,
    PermissionDenied,
    SignatureMismatch,
)
from orderflow.metrics import PAYMENT_SIGNATURE_FAILURES
from orderflow.models.order import OrderStatus
from orderflow.models.payment import PaymentStatus
from orderflow.publishers.event_publisher import (
    ORDER_CONFIRMED_TEMPLATE,
    EventPublisher,
    notify_order_event,
)
from orderflow.repositories.order_repository import OrderRepository
from orderflow.repositories.payment_repository import PaymentRepository
from orderflow.schemas.identity import CurrentUser
from orderflow.schemas.order import OrderResponse, PaymentSummary
from orderflow.schemas.payment import (
    GatewayIntent,
    PaymentCreate,
    PaymentCreateResponse,
    PaymentDetail,
    PaymentOrderSummary,
    PaymentStatusResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from orderflow.services.order_service import order_event_payload
from orderflow.services.order_status import transition_order
from orderflow.services.payment_gateway import PaymentGatewayClient, verify_signature
from orderflow.services.pricing import quantize_money, to_minor_units

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class PaymentService:
    """Service layer for payment intents and verification"""

    def __init__(self, db: Session, gateway: PaymentGatewayClient,
                 publisher: Optional[EventPublisher] = None, key_secret: Optional[str] = None):
        self.db = db
        self.orders = OrderRepository(db)
        self.payments = PaymentRepository(db)
        self.gateway = gateway
        self.publisher = publisher
        self.key_secret = key_secret if key_secret is not None else settings.PAYMENT_GATEWAY_KEY_SECRET

    async def create_intent(self, user: CurrentUser, request: PaymentCreate) -> PaymentCreateResponse:
        """
        Create a gateway payment intent for an order

        Steps:
        1. Check the order belongs to the customer and is payable
        2. Call the gateway to create its order object
        3. Record a PENDING payment attempt with the quoted amount

        Raises:
            OrderNotFound: Order missing or owned by someone else
            InvalidOrderState: Order not payable or already paid
            OrderValidationError: Supplied amount differs from the order total
            GatewayUnavailable: Gateway call failed; the order is left untouched
        """
        order = self.orders.get_for_user(request.order_id, user.user_id)
        if not order:
            raise OrderNotFound(request.order_id)

        if order.status not in PAYABLE_STATUSES:
            raise InvalidOrderState(
                "Order is not eligible for payment",
                current_status=OrderStatus(order.status).value
            )

        if self.payments.has_completed(order.id):
            raise InvalidOrderState(
                "Payment already completed for this order",
                current_status=OrderStatus(order.status).value
            )

        amount = quantize_money(order.total_amount)
        if request.amount is not None and quantize_money(request.amount) != amount:
            raise OrderValidationError(
                "Payment amount does not match order total",
                orderTotal=float(amount)
            )

        gateway_order = await self.gateway.create_order(
            amount_minor=to_minor_units(amount),
            currency=settings.CURRENCY,
            receipt=f"order_{order.order_number}",
            notes={
                "orderId": str(order.id),
                "userId": user.user_id,
                "orderNumber": order.order_number,
            },
        )

        with UnitOfWork(self.db):
            payment = self.payments.create({
                "order_id": order.id,
                "amount": amount,
                "currency": gateway_order.get("currency", settings.CURRENCY),
                "method": request.payment_method,
                "status": PaymentStatus.PENDING,
                "gateway_order_id": gateway_order["id"],
            })
            summary = PaymentSummary.model_validate(payment)

        logger.info(f"Payment {summary.id} initiated for order {order.id} (gateway order {gateway_order['id']})")

        return PaymentCreateResponse(
            message="Payment initiated successfully",
            payment=summary,
            gateway=GatewayIntent(
                order_id=gateway_order["id"],
                amount=gateway_order.get("amount", to_minor_units(amount)),
                currency=gateway_order.get("currency", settings.CURRENCY),
                key_id=self.gateway.key_id,
            ),
        )

    def verify_callback(self, user: CurrentUser, payload: PaymentVerifyRequest) -> PaymentVerifyResponse:
        """
        Verify a signed gateway callback and confirm the order

        The payment's PENDING -> COMPLETED update is conditional and the
        order row is locked, so replaying a valid callback confirms the
        order and reserves its stock exactly once. The payment is only
        captured while the order is PENDING or CONFIRMED.

        Raises:
            PaymentNotFound: No payment for the gateway order id
            PermissionDenied: Payment belongs to another customer
            SignatureMismatch: Signature invalid; nothing is changed
            InvalidOrderState: Order is no longer payable; nothing is changed
            InsufficientStock: Stock could not be reserved; nothing is changed
        """
        payment = self.payments.get_by_gateway_order_id(payload.gateway_order_id)
        if not payment:
            raise PaymentNotFound(payload.gateway_order_id)

        if payload.order_id is not None and payload.order_id != payment.order_id:
            raise OrderValidationError("Payment does not belong to this order", orderId=payload.order_id)

        order_id = payment.order_id
        payment_id = payment.id
        if payment.order.user_id != user.user_id and not user.is_admin:
            raise PermissionDenied("Unauthorized access to payment")

        if not verify_signature(payload.gateway_order_id, payload.gateway_payment_id,
                                payload.signature, self.key_secret):
            PAYMENT_SIGNATURE_FAILURES.inc()
            logger.warning(
                f"Signature mismatch for payment {payment_id} "
                f"(gateway order {payload.gateway_order_id}, payment {payload.gateway_payment_id})"
            )
            raise SignatureMismatch()

        confirmed = False
        with UnitOfWork(self.db):
            order = self.orders.get_for_update(order_id)
            if order.status not in PAYABLE_STATUSES:
                logger.warning(
                    f"Callback for payment {payment_id} rejected; order {order_id} is {order.status.value}"
                )
                raise InvalidOrderState(
                    "Order is no longer payable",
                    current_status=OrderStatus(order.status).value
                )

            claimed = self.payments.mark_completed(payment_id, payload.gateway_payment_id)

            if order.status == OrderStatus.PENDING:
                transition_order(
                    self.db,
                    order,
                    OrderStatus.CONFIRMED,
                    message="Payment verified successfully - Order confirmed"
                )
                confirmed = True
            elif claimed:
                logger.warning(f"Payment {payment_id} captured for already confirmed order {order_id}")

        if not confirmed:
            logger.info(f"Replayed callback for payment {payment_id}; order {order_id} unchanged")

        response = OrderResponse.model_validate(self.orders.get_by_id(order_id))
        if confirmed:
            notify_order_event(self.publisher, ORDER_CONFIRMED_TEMPLATE, order_event_payload(response),
                               response.customer_email)

        return PaymentVerifyResponse(verified=True, already_processed=not confirmed, order=response)

    def get_payment(self, user: CurrentUser, payment_id: int) -> PaymentStatusResponse:
        """
        Get a payment attempt and its order summary

        Raises:
            PaymentNotFound: Payment missing or owned by someone else
        """
        payment = self.payments.get_by_id(payment_id)
        if not payment or (payment.order.user_id != user.user_id and not user.is_admin):
            raise PaymentNotFound(payment_id)

        return PaymentStatusResponse(
            payment=PaymentDetail.model_validate(payment),
            order=PaymentOrderSummary.model_validate(payment.order),
        )
