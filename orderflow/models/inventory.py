"""
SQLAlchemy Inventory model
"""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from orderflow.database import Base
from orderflow.utils import utcnow


class Inventory(Base):
    """Per-product stock ledger row"""

    __tablename__ = "inventory"

    product_id = Column(Integer, ForeignKey("products.id"), primary_key=True)
    quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("Product", back_populates="inventory")

    # Constraints
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="check_quantity_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="check_reserved_non_negative"),
        CheckConstraint("reserved_quantity <= quantity", name="check_reserved_within_quantity"),
    )

    @property
    def available(self) -> int:
        return self.quantity - self.reserved_quantity

    def __repr__(self):
        return f"<Inventory(product_id={self.product_id}, quantity={self.quantity}, reserved={self.reserved_quantity})>"
