"""
Payment Repository - Data Access Layer
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from orderflow.models.payment import Payment, PaymentStatus


class PaymentRepository:
    """Repository for payment attempts"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Payment]:
        """Get payment by the gateway-side order id"""
        return self.db.query(Payment).filter(
            Payment.gateway_order_id == gateway_order_id
        ).first()

    def latest_completed(self, order_id: int) -> Optional[Payment]:
        """Most recent captured payment of an order"""
        return self.db.query(Payment).filter(
            Payment.order_id == order_id,
            Payment.status == PaymentStatus.COMPLETED
        ).order_by(desc(Payment.id)).first()

    def has_completed(self, order_id: int) -> bool:
        return self.latest_completed(order_id) is not None

    def create(self, payment_data: dict) -> Payment:
        """Stage a new payment attempt"""
        payment = Payment(**payment_data)
        self.db.add(payment)
        self.db.flush()
        return payment

    def mark_completed(self, payment_id: int, gateway_payment_id: str) -> bool:
        """
        Move a payment from PENDING to COMPLETED

        Conditional on the current status, so a replayed callback updates
        nothing.

        Returns:
            True if this call performed the transition
        """
        updated = self.db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.status == PaymentStatus.PENDING
        ).update(
            {
                Payment.status: PaymentStatus.COMPLETED,
                Payment.gateway_payment_id: gateway_payment_id,
                Payment.transaction_id: gateway_payment_id,
            },
            synchronize_session=False
        )
        return updated == 1

    def mark_refunded(self, payment_id: int, refund_amount: Decimal) -> bool:
        """Move a COMPLETED payment to REFUNDED and record the refund"""
        updated = self.db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.status == PaymentStatus.COMPLETED
        ).update(
            {
                Payment.status: PaymentStatus.REFUNDED,
                Payment.refund_amount: refund_amount,
            },
            synchronize_session=False
        )
        return updated == 1
