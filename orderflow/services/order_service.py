"""
Order Service - Business Logic Layer
"""
import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from orderflow.config import settings
from orderflow.database import UnitOfWork
from orderflow.exceptions import InsufficientStock, OrderNotFound, OrderValidationError
from orderflow.models.catalog import Product
from orderflow.models.coupon import Coupon
from orderflow.models.order import Order, OrderItem, OrderStatus, OrderTracking
from orderflow.publishers.event_publisher import (
    ORDER_CANCELLED_TEMPLATE,
    EventPublisher,
    notify_order_event,
)
from orderflow.repositories.catalog_repository import CatalogRepository
from orderflow.repositories.inventory_repository import InventoryRepository
from orderflow.repositories.order_repository import OrderRepository
from orderflow.repositories.payment_repository import PaymentRepository
from orderflow.schemas.checkout import (
    CheckoutCalculateRequest,
    CheckoutQuoteResponse,
    CheckoutValidateRequest,
    CheckoutValidateResponse,
    CouponDetails,
    QuoteBreakdown,
    QuoteLine,
    QuotePricing,
    ValidatedLine,
    ValidatedProduct,
)
from orderflow.schemas.identity import CurrentUser
from orderflow.schemas.order import OrderCancelResponse, OrderCreate, OrderListResponse, OrderResponse
from orderflow.services.cancellation import evaluate_cancellation
from orderflow.services.order_status import transition_order
from orderflow.services.pricing import (
    LineItem,
    OrderTotals,
    PricingConfig,
    check_coupon_applicable,
    compute_totals,
    quantize_money,
)
from orderflow.utils import generate_order_number, utcnow

logger = logging.getLogger(__name__)

# (product, quantity) pairs in request order
PricedLines = List[Tuple[Product, int]]


def order_event_payload(order: OrderResponse) -> Dict:
    return order.model_dump(mode="json", by_alias=True)


class OrderService:
    """Service layer for customer-facing order operations"""

    def __init__(self, db: Session, publisher: Optional[EventPublisher] = None,
                 pricing: Optional[PricingConfig] = None):
        self.db = db
        self.repository = OrderRepository(db)
        self.catalog = CatalogRepository(db)
        self.inventory = InventoryRepository(db)
        self.payments = PaymentRepository(db)
        self.publisher = publisher
        self.pricing = pricing or PricingConfig.from_settings(settings)

    # Pricing

    def _price_lines(self, requested) -> PricedLines:
        """Resolve requested lines against the live catalog"""
        products = self.catalog.get_products(line.product_id for line in requested)
        lines = []

        for line in requested:
            product = products.get(line.product_id)
            if not product or not product.is_active:
                raise OrderValidationError(
                    f"Product {line.product_id} not found or no longer available",
                    productId=line.product_id
                )

            client_price = getattr(line, "price", None)
            if client_price is not None and quantize_money(client_price) != quantize_money(product.price):
                raise OrderValidationError(
                    f"Price for {product.name} has changed. Current price: {quantize_money(product.price)}",
                    productId=product.id,
                    currentPrice=float(product.price)
                )

            lines.append((product, line.quantity))

        return lines

    def _check_availability(self, lines: PricedLines) -> None:
        """Reject the cart when any product lacks sellable stock"""
        requested: Dict[int, int] = OrderedDict()
        names: Dict[int, str] = {}
        for product, quantity in lines:
            requested[product.id] = requested.get(product.id, 0) + quantity
            names[product.id] = product.name

        issues = []
        for product_id, quantity in requested.items():
            available = self.inventory.available(product_id)
            if available < quantity:
                issues.append({
                    "productId": product_id,
                    "productName": names[product_id],
                    "available": available,
                    "requested": quantity,
                })

        if issues:
            first = issues[0]
            raise InsufficientStock(
                first["productId"],
                available=first["available"],
                requested=first["requested"],
                product_name=first["productName"],
                issues=issues,
            )

    def _resolve_coupon(self, code: Optional[str], subtotal: Decimal, now: datetime) -> Optional[Coupon]:
        if not code:
            return None
        coupon = self.catalog.get_coupon(code)
        if not coupon:
            raise OrderValidationError(f"Invalid coupon code {code}", couponCode=code)
        check_coupon_applicable(coupon, subtotal, now)
        return coupon

    def _totals(self, lines: PricedLines, coupon_code: Optional[str]) -> Tuple[OrderTotals, Optional[Coupon]]:
        items = [LineItem(price=product.price, quantity=quantity) for product, quantity in lines]
        base = compute_totals(items, None, self.pricing)
        coupon = self._resolve_coupon(coupon_code, base.subtotal, utcnow())
        if coupon is None:
            return base, None
        return compute_totals(items, coupon, self.pricing), coupon

    def quote(self, request: CheckoutCalculateRequest) -> CheckoutQuoteResponse:
        """Price a cart without creating anything"""
        lines = self._price_lines(request.items)
        totals, coupon = self._totals(lines, request.coupon_code)

        quote_lines = []
        total_mrp = Decimal("0")
        for product, quantity in lines:
            mrp = product.mrp if product.mrp is not None else product.price
            total_mrp += mrp * quantity
            quote_lines.append(QuoteLine(
                product_id=product.id,
                name=product.name,
                price=product.price,
                mrp=mrp,
                quantity=quantity,
                subtotal=quantize_money(product.price * quantity),
            ))

        coupon_details = None
        if coupon is not None:
            coupon_details = CouponDetails(
                code=coupon.code,
                name=coupon.name,
                type=coupon.type,
                value=coupon.value,
                discount=totals.discount,
            )

        return CheckoutQuoteResponse(
            items=quote_lines,
            pricing=QuotePricing(
                subtotal=totals.subtotal,
                total_mrp=quantize_money(total_mrp),
                total_savings=quantize_money(total_mrp - totals.subtotal),
                shipping_cost=totals.shipping,
                tax_amount=totals.tax,
                discount_amount=totals.discount,
                total=totals.total,
            ),
            breakdown=QuoteBreakdown(
                item_count=len(lines),
                total_quantity=sum(quantity for _, quantity in lines),
                free_shipping_eligible=totals.shipping == 0,
                coupon_applied=totals.discount > 0,
                coupon_details=coupon_details,
            ),
        )

    def validate_cart(self, request: CheckoutValidateRequest) -> CheckoutValidateResponse:
        """
        Check each cart line against the catalog and sellable stock

        Lines are judged one by one and never raise; the response says
        which lines are unavailable and how much stock is left.
        """
        products = self.catalog.get_products(line.product_id for line in request.items)
        results = []

        for line in request.items:
            product = products.get(line.product_id)
            if not product or not product.is_active:
                results.append(ValidatedLine(
                    product_id=line.product_id,
                    is_valid=False,
                    error="Product not found or not available",
                ))
                continue

            available = self.inventory.available(product.id)
            if available < line.quantity:
                results.append(ValidatedLine(
                    product_id=product.id,
                    is_valid=False,
                    error="Insufficient stock",
                    available_stock=available,
                    requested_quantity=line.quantity,
                ))
                continue

            results.append(ValidatedLine(
                product_id=product.id,
                is_valid=True,
                available_stock=available,
                product=ValidatedProduct(
                    id=product.id,
                    name=product.name,
                    price=product.price,
                    mrp=product.mrp if product.mrp is not None else product.price,
                ),
            ))

        return CheckoutValidateResponse(
            is_valid=all(result.is_valid for result in results),
            items=results,
        )

    # Orders

    def create_order(self, user: CurrentUser, order_data: OrderCreate) -> OrderResponse:
        """
        Create new order

        Steps:
        1. Validate the shipping address belongs to the customer
        2. Price every line from the live catalog
        3. Check sellable stock for every product
        4. Apply the coupon and compute totals
        5. Save order, items and the PENDING tracking entry in one transaction

        Stock is reserved later, when the order is confirmed.

        Raises:
            OrderValidationError: Unknown address, product, coupon or stale price
            CouponNotApplicable: Coupon inactive, expired or below minimum order
            InsufficientStock: Any product lacks sellable stock
        """
        address = self.catalog.get_address(order_data.shipping_address_id, user.user_id)
        if not address:
            raise OrderValidationError(
                "Invalid shipping address",
                shippingAddressId=order_data.shipping_address_id
            )

        lines = self._price_lines(order_data.items)
        self._check_availability(lines)
        totals, coupon = self._totals(lines, order_data.coupon_code)

        total_savings = sum(
            ((product.mrp if product.mrp is not None else product.price) - product.price) * quantity
            for product, quantity in lines
        )

        with UnitOfWork(self.db):
            order = Order(
                order_number=generate_order_number(),
                user_id=user.user_id,
                customer_name=user.name or address.full_name,
                customer_email=user.email,
                status=OrderStatus.PENDING,
                payment_method=order_data.payment_method,
                subtotal=totals.subtotal,
                shipping_cost=totals.shipping,
                tax=totals.tax,
                discount=totals.discount,
                total_amount=totals.total,
                total_savings=quantize_money(total_savings),
                coupon_code=coupon.code if coupon else None,
                shipping_address=address.snapshot(),
                notes=order_data.notes,
                emi_plan_id=order_data.emi_plan_id,
                inventory_reserved=False,
            )
            for product, quantity in lines:
                order.items.append(OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    price=product.price,
                    mrp=product.mrp if product.mrp is not None else product.price,
                ))
            order.tracking.append(OrderTracking(
                status=OrderStatus.PENDING,
                message="Order placed, awaiting payment"
            ))
            self.repository.add(order)
            order_id = order.id

        logger.info(f"Order {order_id} created for user {user.user_id}: total={totals.total}")
        return self.get_order(user, order_id)

    def get_order(self, user: CurrentUser, order_id: int) -> OrderResponse:
        """Get order by ID; customers only see their own orders"""
        if user.is_admin:
            order = self.repository.get_by_id(order_id)
        else:
            order = self.repository.get_for_user(order_id, user.user_id)
        if not order:
            raise OrderNotFound(order_id)
        return OrderResponse.model_validate(order)

    def list_orders(self, user: CurrentUser, page: int = 1, limit: int = 20) -> OrderListResponse:
        """Get the customer's orders with pagination"""
        orders, total = self.repository.get_by_user(user.user_id, skip=(page - 1) * limit, limit=limit)
        return OrderListResponse(
            orders=[OrderResponse.model_validate(o) for o in orders],
            total=total,
            page=page,
            limit=limit
        )

    def cancel_order(self, user: CurrentUser, order_id: int, reason: Optional[str] = None,
                     now: Optional[datetime] = None) -> OrderCancelResponse:
        """
        Customer cancellation within the cancellation window

        Releases the order's reservation, marks the captured payment
        REFUNDED and records the refund on the order.

        Raises:
            OrderNotFound: Order missing or owned by someone else
            InvalidOrderState: Order is not CONFIRMED
            CancellationWindowExpired: Window since confirmation has passed
        """
        now = now or utcnow()
        rate = settings.CANCELLATION_FEE_RATE
        percent = f"{(rate * 100).normalize():f}"

        with UnitOfWork(self.db):
            order = self.repository.get_for_update(order_id)
            if not order or order.user_id != user.user_id:
                raise OrderNotFound(order_id)

            payment = self.payments.latest_completed(order.id)
            quote = evaluate_cancellation(
                order,
                payment.amount if payment else None,
                now,
                window_hours=settings.CANCELLATION_WINDOW_HOURS,
                deduction_rate=rate,
            )
            refund = f"{settings.CURRENCY} {quote.refund_amount}"

            transition_order(
                self.db,
                order,
                OrderStatus.CANCELLED,
                message=(
                    f"Order cancelled within {settings.CANCELLATION_WINDOW_HOURS} hours. "
                    f"{percent}% fee deducted. Refund: {refund}."
                ),
            )
            cancel_note = (
                f"Order cancelled by customer. Reason: {reason or 'N/A'}. "
                f"Refund after {percent}% deduction: {refund}."
            )
            order.notes = f"{order.notes}\n{cancel_note}" if order.notes else cancel_note

            if payment:
                self.payments.mark_refunded(payment.id, quote.refund_amount)

        logger.info(f"Order {order_id} cancelled by customer; refund {quote.refund_amount}")

        response = self.get_order(user, order_id)
        notify_order_event(self.publisher, ORDER_CANCELLED_TEMPLATE, order_event_payload(response),
                           response.customer_email)

        return OrderCancelResponse(
            message="Order cancelled successfully. Refund will be processed as per policy.",
            order=response,
            refund_amount=quote.refund_amount,
            deduction_rate=rate,
        )
