"""
Services package
"""
from orderflow.services.admin_service import AdminOrderService
from orderflow.services.order_service import OrderService
from orderflow.services.payment_gateway import PaymentGatewayClient
from orderflow.services.payment_service import PaymentService

__all__ = ["AdminOrderService", "OrderService", "PaymentGatewayClient", "PaymentService"]
