"""
Catalog Repository - read-only access to products, addresses and coupons
"""
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from orderflow.models.catalog import Address, Product
from orderflow.models.coupon import Coupon


class CatalogRepository:
    """Read-only repository for data owned by the catalog and account services"""

    def __init__(self, db: Session):
        self.db = db

    def get_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Get products by ID, keyed by ID"""
        ids = set(product_ids)
        if not ids:
            return {}
        products = self.db.query(Product).filter(Product.id.in_(ids)).all()
        return {product.id: product for product in products}

    def get_address(self, address_id: int, user_id: str) -> Optional[Address]:
        """Get an address if it belongs to the user"""
        return self.db.query(Address).filter(
            Address.id == address_id,
            Address.user_id == user_id
        ).first()

    def get_coupon(self, code: str) -> Optional[Coupon]:
        """Get coupon by code (case-insensitive)"""
        return self.db.query(Coupon).filter(Coupon.code == code.strip().upper()).first()
