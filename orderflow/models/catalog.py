"""
Read-only catalog and address models owned by other parts of the storefront
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from orderflow.database import Base
from orderflow.utils import utcnow


class Product(Base):
    """Product database model (price and availability only)"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    sku = Column(String(100), nullable=True, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    mrp = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    inventory = relationship("Inventory", back_populates="product", uselist=False)

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"


class Address(Base):
    """Customer shipping address"""

    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(16), nullable=False)
    country = Column(String(64), nullable=False, default="India")

    def snapshot(self) -> dict:
        """Copy stored on the order so later edits never change past orders"""
        return {
            "fullName": self.full_name,
            "phone": self.phone,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "country": self.country,
        }

    def __repr__(self):
        return f"<Address(id={self.id}, user_id='{self.user_id}', city='{self.city}')>"
