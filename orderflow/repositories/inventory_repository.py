"""
Inventory Ledger - Data Access Layer

Every mutation is a single conditional UPDATE, so the availability check
and the write happen in one statement and concurrent checkouts cannot
both pass the check for the last unit. Nothing here commits; the
enclosing UnitOfWork owns the transaction.
"""
import logging
from typing import Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from orderflow.exceptions import InsufficientStock
from orderflow.models.inventory import Inventory

logger = logging.getLogger(__name__)


class InventoryRepository:
    """Repository for the per-product inventory ledger"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[Inventory]:
        """Get the ledger row as currently stored in the database"""
        return self.db.query(Inventory).populate_existing().filter(
            Inventory.product_id == product_id
        ).first()

    def available(self, product_id: int) -> int:
        """Sellable stock: quantity - reserved_quantity (0 when no ledger row)"""
        inventory = self.get(product_id)
        if not inventory:
            return 0
        return inventory.available

    def reserve(self, product_id: int, quantity: int) -> None:
        """
        Reserve stock for an order

        Args:
            product_id: Product ID
            quantity: Units to reserve

        Raises:
            InsufficientStock: If fewer than `quantity` units are available;
                reserved_quantity is left unchanged
        """
        updated = self.db.query(Inventory).filter(
            Inventory.product_id == product_id,
            Inventory.quantity - Inventory.reserved_quantity >= quantity
        ).update(
            {Inventory.reserved_quantity: Inventory.reserved_quantity + quantity},
            synchronize_session=False
        )

        if updated == 0:
            available = self.available(product_id)
            logger.warning(
                f"Reservation rejected for product {product_id}: available={available}, requested={quantity}"
            )
            raise InsufficientStock(product_id, available=available, requested=quantity)

        logger.info(f"Reserved {quantity} unit(s) of product {product_id}")

    def release(self, product_id: int, quantity: int) -> None:
        """Release a reservation (reserved_quantity floors at 0)"""
        updated = self.db.query(Inventory).filter(
            Inventory.product_id == product_id
        ).update(
            {
                Inventory.reserved_quantity: case(
                    (Inventory.reserved_quantity > quantity, Inventory.reserved_quantity - quantity),
                    else_=0
                )
            },
            synchronize_session=False
        )

        if updated == 0:
            logger.warning(f"No inventory row for product {product_id}; nothing to release")
            return

        logger.info(f"Released {quantity} unit(s) of product {product_id}")

    def commit(self, product_id: int, quantity: int) -> None:
        """
        Remove delivered stock from both quantity and reserved_quantity

        Raises:
            InsufficientStock: If the product holds fewer than `quantity` units
        """
        updated = self.db.query(Inventory).filter(
            Inventory.product_id == product_id,
            Inventory.quantity >= quantity
        ).update(
            {
                Inventory.quantity: Inventory.quantity - quantity,
                Inventory.reserved_quantity: case(
                    (Inventory.reserved_quantity > quantity, Inventory.reserved_quantity - quantity),
                    else_=0
                ),
            },
            synchronize_session=False
        )

        if updated == 0:
            inventory = self.get(product_id)
            on_hand = inventory.quantity if inventory else 0
            raise InsufficientStock(product_id, available=on_hand, requested=quantity)

        logger.info(f"Committed {quantity} unit(s) of product {product_id}")
