"""
Order Status State Machine

Validates status changes against a fixed graph and applies the inventory
ledger side effects of each change. transition_order never commits: the
status write, the tracking entry and every ledger adjustment belong to
the caller's UnitOfWork and succeed or fail together.
"""
import logging
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session

from orderflow.exceptions import InvalidTransition
from orderflow.metrics import ORDER_TRANSITIONS
from orderflow.models.order import Order, OrderStatus, OrderTracking
from orderflow.repositories.inventory_repository import InventoryRepository
from orderflow.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)

S = OrderStatus

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.PROCESSING, S.CANCELLED}),
    S.PROCESSING: frozenset({S.SHIPPED, S.CANCELLED}),
    S.SHIPPED: frozenset({S.OUT_FOR_DELIVERY, S.DELIVERED}),
    S.OUT_FOR_DELIVERY: frozenset({S.DELIVERED, S.RETURNED}),
    S.DELIVERED: frozenset({S.RETURNED}),
    S.CANCELLED: frozenset(),
    S.RETURNED: frozenset({S.REFUNDED}),
    S.REFUNDED: frozenset(),
}

CANCELLABLE_STATUSES = (S.PENDING, S.CONFIRMED, S.PROCESSING)

# Statuses whose orders count towards revenue
REVENUE_STATUSES = (S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.OUT_FOR_DELIVERY, S.DELIVERED)

_STATUS_ORDER = list(OrderStatus)


def allowed_transitions(status: OrderStatus) -> List[OrderStatus]:
    """Statuses reachable from `status` in one step, in declaration order"""
    targets = ALLOWED_TRANSITIONS[OrderStatus(status)]
    return sorted(targets, key=_STATUS_ORDER.index)


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    return OrderStatus(to_status) in ALLOWED_TRANSITIONS[OrderStatus(from_status)]


def default_message(status: OrderStatus) -> str:
    return f"Order status updated to {OrderStatus(status).value}"


def _apply_inventory_effects(inventory: InventoryRepository, order: Order, new_status: OrderStatus):
    if new_status == S.CONFIRMED and order.status == S.PENDING:
        for item in order.items:
            inventory.reserve(item.product_id, item.quantity)
        order.inventory_reserved = True

    elif new_status in (S.CANCELLED, S.RETURNED):
        # Release exactly what this order reserved; a PENDING order holds nothing
        # and a delivered order's stock was already committed
        if order.inventory_reserved:
            for item in order.items:
                inventory.release(item.product_id, item.quantity)
            order.inventory_reserved = False

    elif new_status == S.DELIVERED:
        for item in order.items:
            inventory.commit(item.product_id, item.quantity)
        order.inventory_reserved = False


def transition_order(
    db: Session,
    order: Order,
    new_status: OrderStatus,
    message: Optional[str] = None,
    tracking_number: Optional[str] = None,
    location: Optional[str] = None,
) -> OrderTracking:
    """
    Move an order to a new status

    Args:
        db: Session of the enclosing UnitOfWork
        order: Order to transition (ideally loaded with a row lock)
        new_status: Target status
        message: Free-text note for the tracking entry
        tracking_number: Courier tracking number, stored on order and entry
        location: Tracking location

    Returns:
        The appended tracking entry

    Raises:
        InvalidTransition: If the edge is not in the state graph
        InsufficientStock: If confirming and any item cannot be reserved
    """
    new_status = OrderStatus(new_status)
    old_status = OrderStatus(order.status)

    if not can_transition(old_status, new_status):
        allowed = [status.value for status in allowed_transitions(old_status)]
        raise InvalidTransition(old_status.value, new_status.value, allowed)

    _apply_inventory_effects(InventoryRepository(db), order, new_status)

    order.status = new_status
    if tracking_number:
        order.tracking_number = tracking_number

    entry = OrderRepository(db).add_tracking(
        order,
        new_status,
        message=message or default_message(new_status),
        location=location,
        tracking_number=tracking_number,
    )

    ORDER_TRANSITIONS.labels(from_status=old_status.value, to_status=new_status.value).inc()
    logger.info(f"Order {order.id} status: {old_status.value} -> {new_status.value}")
    return entry
