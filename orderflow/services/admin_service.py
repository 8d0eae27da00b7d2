"""
Admin Order Service - back-office read model and status mutations
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from orderflow.database import UnitOfWork
from orderflow.exceptions import CannotCancel, OrderNotFound
from orderflow.models.order import Order, OrderStatus
from orderflow.models.payment import PaymentStatus
from orderflow.publishers.event_publisher import (
    ORDER_CANCELLED_TEMPLATE,
    ORDER_CONFIRMED_TEMPLATE,
    EventPublisher,
    notify_order_event,
)
from orderflow.repositories.order_repository import OrderRepository
from orderflow.schemas.admin import (
    AdminCancelResponse,
    AdminOrderListResponse,
    AdminOrderRef,
    AdminOrderSummary,
    AdminStatusUpdateResponse,
    OrderStatistics,
    Pagination,
)
from orderflow.schemas.order import OrderItemResponse, OrderResponse, PaymentSummary, TrackingResponse
from orderflow.services.order_service import order_event_payload
from orderflow.services.order_status import CANCELLABLE_STATUSES, REVENUE_STATUSES, transition_order
from orderflow.utils import utcnow

logger = logging.getLogger(__name__)

NOTIFY_TEMPLATES = {
    OrderStatus.CONFIRMED: ORDER_CONFIRMED_TEMPLATE,
    OrderStatus.CANCELLED: ORDER_CANCELLED_TEMPLATE,
}


def summarize(order: Order) -> AdminOrderSummary:
    latest = order.tracking[-1] if order.tracking else None
    return AdminOrderSummary(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        total_amount=order.total_amount,
        item_count=sum(item.quantity for item in order.items),
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        shipping_address=order.shipping_address,
        tracking_number=order.tracking_number,
        payments=[PaymentSummary.model_validate(p) for p in order.payments],
        latest_tracking=TrackingResponse.model_validate(latest) if latest else None,
        items=[OrderItemResponse.model_validate(i) for i in order.items],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


class AdminOrderService:
    """Service layer for admin order management"""

    def __init__(self, db: Session, publisher: Optional[EventPublisher] = None):
        self.db = db
        self.repository = OrderRepository(db)
        self.publisher = publisher

    def list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[OrderStatus] = None,
        search: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> AdminOrderListResponse:
        """Filtered, paginated orders with dashboard statistics"""
        orders, total = self.repository.search(
            skip=(page - 1) * limit,
            limit=limit,
            status=status,
            search=search,
            start_date=start_date,
            end_date=end_date,
            payment_status=payment_status,
        )

        counts = self.repository.count_by_status()
        statistics = OrderStatistics(
            **{s.value.lower(): counts[s] for s in OrderStatus},
            total_revenue=self.repository.revenue(list(REVENUE_STATUSES)),
            today_orders=self.repository.count_since(utcnow() - timedelta(hours=24)),
        )

        total_pages = math.ceil(total / limit) if limit else 0
        return AdminOrderListResponse(
            orders=[summarize(o) for o in orders],
            pagination=Pagination(
                page=page,
                limit=limit,
                total_count=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
            statistics=statistics,
        )

    def _notify(self, order_id: int, status: OrderStatus):
        template = NOTIFY_TEMPLATES.get(status)
        if not template:
            return
        response = OrderResponse.model_validate(self.repository.get_by_id(order_id))
        notify_order_event(self.publisher, template, order_event_payload(response), response.customer_email)

    def update_status(self, order_id: int, status: OrderStatus, tracking_number: Optional[str] = None,
                      notes: Optional[str] = None) -> AdminStatusUpdateResponse:
        """
        Admin status change

        Raises:
            OrderNotFound: Unknown order
            InvalidTransition: Edge not in the state graph (reports allowed set)
            InsufficientStock: Confirming and stock cannot be reserved
        """
        status = OrderStatus(status)

        with UnitOfWork(self.db):
            order = self.repository.get_for_update(order_id)
            if not order:
                raise OrderNotFound(order_id)

            entry = transition_order(
                self.db,
                order,
                status,
                message=notes,
                tracking_number=tracking_number,
                location="In Transit" if tracking_number else None,
            )
            tracking = TrackingResponse.model_validate(entry)
            order_ref = AdminOrderRef.model_validate(order)

        logger.info(f"Admin updated order {order_id} to {status.value}")
        self._notify(order_id, status)

        return AdminStatusUpdateResponse(
            message=f"Order status updated to {status.value} successfully",
            order=order_ref,
            tracking=tracking,
        )

    def cancel_order(self, order_id: int, reason: Optional[str] = None) -> AdminCancelResponse:
        """
        Admin cancellation, allowed only before shipping

        Raises:
            OrderNotFound: Unknown order
            CannotCancel: Order status is not cancellable
        """
        reason = reason or "Cancelled by admin"

        with UnitOfWork(self.db):
            order = self.repository.get_for_update(order_id)
            if not order:
                raise OrderNotFound(order_id)

            if order.status not in CANCELLABLE_STATUSES:
                raise CannotCancel(
                    OrderStatus(order.status).value,
                    [s.value for s in CANCELLABLE_STATUSES]
                )

            entry = transition_order(self.db, order, OrderStatus.CANCELLED, message=reason)
            tracking = TrackingResponse.model_validate(entry)

        logger.info(f"Admin cancelled order {order_id}: {reason}")
        self._notify(order_id, OrderStatus.CANCELLED)

        return AdminCancelResponse(
            message="Order cancelled successfully",
            order_id=order_id,
            reason=reason,
            tracking=tracking,
        )
