"""
Repositories package
"""
from orderflow.repositories.catalog_repository import CatalogRepository
from orderflow.repositories.inventory_repository import InventoryRepository
from orderflow.repositories.order_repository import OrderRepository
from orderflow.repositories.payment_repository import PaymentRepository

__all__ = ["CatalogRepository", "InventoryRepository", "OrderRepository", "PaymentRepository"]
