"""
Shared API dependencies: caller identity and service factories
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from orderflow.database import get_db
from orderflow.publishers.event_publisher import EventPublisher
from orderflow.schemas.identity import CurrentUser
from orderflow.services.admin_service import AdminOrderService
from orderflow.services.order_service import OrderService
from orderflow.services.payment_gateway import PaymentGatewayClient
from orderflow.services.payment_service import PaymentService


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> CurrentUser:
    """
    Identity verified upstream by the auth gateway

    The gateway forwards X-User-Id, X-User-Role, X-User-Email and
    X-User-Name on every authenticated request.
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return CurrentUser(
        user_id=x_user_id,
        role=x_user_role or "CUSTOMER",
        email=x_user_email,
        name=x_user_name,
    )


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Reject non-admin callers before any work is done"""
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def get_event_publisher() -> EventPublisher:
    return EventPublisher()


def get_payment_gateway() -> PaymentGatewayClient:
    return PaymentGatewayClient()


def get_order_service(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher)
) -> OrderService:
    """Dependency to get OrderService instance"""
    return OrderService(db, publisher)


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: PaymentGatewayClient = Depends(get_payment_gateway),
    publisher: EventPublisher = Depends(get_event_publisher)
) -> PaymentService:
    """Dependency to get PaymentService instance"""
    return PaymentService(db, gateway, publisher)


def get_admin_service(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher)
) -> AdminOrderService:
    """Dependency to get AdminOrderService instance"""
    return AdminOrderService(db, publisher)
