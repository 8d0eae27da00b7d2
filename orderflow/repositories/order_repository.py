"""
Order Repository - Data Access Layer
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Query, Session, selectinload

from orderflow.models.order import Order, OrderStatus, OrderTracking
from orderflow.models.payment import Payment, PaymentStatus


class OrderRepository:
    """Repository for Order reads and writes"""

    def __init__(self, db: Session):
        self.db = db

    def _with_children(self) -> Query:
        return self.db.query(Order).options(
            selectinload(Order.items),
            selectinload(Order.tracking),
            selectinload(Order.payments),
        )

    def get_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID"""
        return self._with_children().filter(Order.id == order_id).first()

    def get_for_update(self, order_id: int) -> Optional[Order]:
        """Get order by ID and lock its row until the transaction ends"""
        return self.db.query(Order).populate_existing().filter(
            Order.id == order_id
        ).with_for_update().first()

    def get_for_user(self, order_id: int, user_id: str) -> Optional[Order]:
        """Get order by ID if it belongs to the user"""
        return self._with_children().filter(
            Order.id == order_id,
            Order.user_id == user_id
        ).first()

    def get_by_user(self, user_id: str, skip: int = 0, limit: int = 20) -> Tuple[List[Order], int]:
        """Get a user's orders, newest first"""
        query = self.db.query(Order).filter(Order.user_id == user_id)
        total = query.count()
        orders = self._with_children().filter(Order.user_id == user_id).order_by(
            desc(Order.created_at), desc(Order.id)
        ).offset(skip).limit(limit).all()
        return orders, total

    def add(self, order: Order) -> Order:
        """
        Stage a new order with its items and tracking entries

        The order gets its primary key on flush; the caller commits.
        """
        self.db.add(order)
        self.db.flush()
        return order

    def add_tracking(self, order: Order, status: OrderStatus, message: Optional[str] = None,
                     location: Optional[str] = None, tracking_number: Optional[str] = None) -> OrderTracking:
        """Append a tracking entry"""
        entry = OrderTracking(
            status=status,
            message=message,
            location=location,
            tracking_number=tracking_number
        )
        order.tracking.append(entry)
        self.db.flush()
        return entry

    def search(
        self,
        skip: int = 0,
        limit: int = 20,
        status: Optional[OrderStatus] = None,
        search: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Tuple[List[Order], int]:
        """Filtered, paginated order listing, newest first"""
        filters = []

        if status:
            filters.append(Order.status == status)

        if search:
            pattern = f"%{search.lower()}%"
            filters.append(or_(
                func.lower(Order.order_number).like(pattern),
                func.lower(Order.customer_name).like(pattern),
                func.lower(Order.customer_email).like(pattern),
            ))

        if start_date:
            filters.append(Order.created_at >= start_date)
        if end_date:
            filters.append(Order.created_at <= end_date)

        if payment_status:
            filters.append(Order.payments.any(Payment.status == payment_status))

        total = self.db.query(Order).filter(*filters).count()
        orders = self._with_children().filter(*filters).order_by(
            desc(Order.created_at), desc(Order.id)
        ).offset(skip).limit(limit).all()

        return orders, total

    def count_by_status(self) -> Dict[OrderStatus, int]:
        """Order count per status"""
        rows = self.db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
        counts = {status: 0 for status in OrderStatus}
        for status, count in rows:
            counts[OrderStatus(status)] = count
        return counts

    def revenue(self, statuses: List[OrderStatus]) -> Decimal:
        """Sum of order totals over the given statuses"""
        total = self.db.query(func.coalesce(func.sum(Order.total_amount), 0)).filter(
            Order.status.in_(statuses)
        ).scalar()
        return Decimal(str(total))

    def count_since(self, since: datetime) -> int:
        """Number of orders created at or after `since`"""
        return self.db.query(Order).filter(Order.created_at >= since).count()
