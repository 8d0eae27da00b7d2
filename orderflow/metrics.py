"""
Prometheus counters for order lifecycle events
"""
from prometheus_client import Counter

ORDER_TRANSITIONS = Counter(
    "orderflow_order_transitions_total",
    "Order status transitions applied",
    ["from_status", "to_status"],
)

PAYMENT_SIGNATURE_FAILURES = Counter(
    "orderflow_payment_signature_failures_total",
    "Payment callbacks rejected because of a signature mismatch",
)

NOTIFICATION_FAILURES = Counter(
    "orderflow_notification_failures_total",
    "Order email notifications that could not be published",
    ["template"],
)
