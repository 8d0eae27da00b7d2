"""
Cancellation / Refund Policy for customer-initiated cancellations
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from orderflow.exceptions import CancellationWindowExpired, InvalidOrderState
from orderflow.models.order import Order, OrderStatus
from orderflow.services.pricing import quantize_money
from orderflow.utils import as_utc


class CancellationQuote(BaseModel):
    """Outcome of an eligible cancellation"""
    confirmed_at: datetime
    hours_since_confirmation: float
    captured_amount: Decimal
    deduction_rate: Decimal
    refund_amount: Decimal


def confirmed_at(order: Order) -> datetime:
    """When the order entered CONFIRMED, falling back to its creation time"""
    for entry in order.tracking:
        if entry.status == OrderStatus.CONFIRMED:
            return as_utc(entry.created_at)
    return as_utc(order.created_at)


def refund_for(captured_amount: Decimal, deduction_rate: Decimal) -> Decimal:
    return quantize_money(Decimal(str(captured_amount)) * (Decimal("1") - deduction_rate))


def evaluate_cancellation(
    order: Order,
    captured_amount: Optional[Decimal],
    now: datetime,
    window_hours: int = 12,
    deduction_rate: Decimal = Decimal("0.05"),
) -> CancellationQuote:
    """
    Decide whether a customer may cancel and how much is refunded

    Raises:
        InvalidOrderState: If the order is not CONFIRMED
        CancellationWindowExpired: If more than `window_hours` have passed
            since confirmation
    """
    if order.status != OrderStatus.CONFIRMED:
        raise InvalidOrderState(
            "Order cannot be cancelled at this stage",
            current_status=OrderStatus(order.status).value,
        )

    since = confirmed_at(order)
    elapsed = as_utc(now) - since
    hours = elapsed.total_seconds() / 3600

    if elapsed > timedelta(hours=window_hours):
        raise CancellationWindowExpired(window_hours, hours)

    captured = quantize_money(captured_amount or 0)
    return CancellationQuote(
        confirmed_at=since,
        hours_since_confirmation=hours,
        captured_amount=captured,
        deduction_rate=deduction_rate,
        refund_amount=refund_for(captured, deduction_rate),
    )
