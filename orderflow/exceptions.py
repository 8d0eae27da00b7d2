"""
Domain exceptions for the order lifecycle.

Every error carries a machine-readable ``code``, the HTTP status the API
layer maps it to, and structured ``details`` the caller can show to the
end user (current state, allowed alternatives, available stock, ...).
"""
from typing import Any, Dict, List


class OrderflowError(Exception):
    """Base exception for order lifecycle errors"""

    code = "ORDERFLOW_ERROR"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.details}


# Validation errors: rejected before any state mutation

class OrderValidationError(OrderflowError):
    """Malformed or inconsistent input (unknown address, coupon, product, amount)"""
    code = "VALIDATION_ERROR"


class CouponNotApplicable(OrderflowError):
    """Coupon exists but cannot be applied to this cart"""
    code = "COUPON_NOT_APPLICABLE"

    def __init__(self, coupon_code: str, reason: str):
        super().__init__(f"Coupon {coupon_code} cannot be applied: {reason}", couponCode=coupon_code, reason=reason)


# Conflict errors: business-rule violations

class InsufficientStock(OrderflowError):
    """Not enough sellable stock to reserve or commit"""
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, available: int, requested: int, product_name: str = None, issues: List[dict] = None):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}, Requested: {requested}",
            productId=product_id,
            available=available,
            requested=requested,
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested
        if issues:
            self.details["issues"] = issues


class InvalidTransition(OrderflowError):
    """Status change not present in the order state graph"""
    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, allowed: List[str]):
        super().__init__(
            f"Invalid status transition from {from_status} to {to_status}",
            fromStatus=from_status,
            toStatus=to_status,
            validTransitions=allowed,
        )
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed


class InvalidOrderState(OrderflowError):
    """Order is not in a state that allows the requested operation"""
    code = "INVALID_ORDER_STATE"

    def __init__(self, message: str, current_status: str):
        super().__init__(message, currentStatus=current_status)
        self.current_status = current_status


class CancellationWindowExpired(OrderflowError):
    """Customer cancellation attempted after the cancellation window closed"""
    code = "CANCELLATION_WINDOW_EXPIRED"

    def __init__(self, window_hours: int, hours_since_confirmation: float):
        super().__init__(
            f"Cancellation window expired. Orders can be cancelled within {window_hours} hours of confirmation.",
            windowHours=window_hours,
            hoursSinceConfirmation=round(hours_since_confirmation, 2),
        )


class CannotCancel(OrderflowError):
    """Admin cancellation attempted on a non-cancellable order"""
    code = "CANNOT_CANCEL"

    def __init__(self, current_status: str, cancellable_statuses: List[str]):
        super().__init__(
            f"Cannot cancel order with status {current_status}",
            currentStatus=current_status,
            cancellableStatuses=cancellable_statuses,
        )


# Integrity errors: potentially adversarial

class SignatureMismatch(OrderflowError):
    """Payment callback signature does not match"""
    code = "SIGNATURE_MISMATCH"

    def __init__(self):
        super().__init__("Payment verification failed")


# Lookup / access

class OrderNotFound(OrderflowError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, order_id):
        super().__init__(f"Order with id={order_id} not found", orderId=order_id)


class PaymentNotFound(OrderflowError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, reference):
        super().__init__(f"Payment record not found for {reference}")


class PermissionDenied(OrderflowError):
    code = "FORBIDDEN"
    status_code = 403


# Transient / external errors

class GatewayUnavailable(OrderflowError):
    """Payment gateway call failed; the order stays PENDING and can be retried"""
    code = "GATEWAY_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "Failed to create payment order. Please try again."):
        super().__init__(message)
