"""
SQLAlchemy Coupon model
"""
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, Integer, Numeric, String

from orderflow.database import Base


class CouponType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


class Coupon(Base):
    """Discount coupon, read-only in this service"""

    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    type = Column(SQLEnum(CouponType, name="coupon_type"), nullable=False)
    value = Column(Numeric(12, 2), nullable=False, default=0)
    min_order_amount = Column(Numeric(12, 2), nullable=True)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Coupon(code='{self.code}', type={self.type}, value={self.value})>"
