from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from retailops.models.inventory import (
    MOVEMENT_IN,
    MOVEMENT_OUT,
    InventoryLevel,
    InventoryMovement,
)
from retailops.models.product import Product
from retailops.services.errors import (
    InsufficientStock,
    InvalidQuantity,
    NotFound,
    ProductNotFound,
)
from retailops.services.permissions import (
    INVENTORY_READ,
    INVENTORY_WRITE,
    Role,
    require,
)
from retailops.utils.logging import get_logger
from retailops.utils.transactions import smart_transaction, stock_locks

log = get_logger("inventory")

INITIAL_STOCK_REASON = "Initial stock"


class InventoryService:
    def __init__(self, db: Session, role: Role = Role.ADMIN):
        self.db = db
        self.role = role

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _append(self, product_id: str, movement_type: str, qty: int, reason: Optional[str]):
        m = InventoryMovement(
            product_id=product_id,
            movement_type=movement_type,
            qty=qty,
            reason=reason,
            created_at=self._now(),
        )
        self.db.add(m)
        return m

    def open_level(self, product: Product, initial_qty: int, reorder_level: int) -> InventoryLevel:
        """
        Create the product's InventoryLevel and, for a positive opening quantity,
        its "Initial stock" movement. Runs inside the caller's transaction.
        """
        level = InventoryLevel(
            product_id=product.id,
            quantity=initial_qty,
            reorder_level=reorder_level,
            updated_at=self._now(),
        )
        self.db.add(level)
        if initial_qty > 0:
            self._append(product.id, MOVEMENT_IN, initial_qty, INITIAL_STOCK_REASON)
        return level

    def stock_in(self, product_id: str, qty: int, reason: Optional[str] = None) -> int:
        """
        Receive `qty` units: bump the level and append one IN movement.
        Returns the new quantity on hand.
        """
        require(self.role, INVENTORY_WRITE)
        if qty is None or qty <= 0:
            raise InvalidQuantity("Quantity must be positive", details={"qty": qty})

        with stock_locks([product_id], session=self.db):
            with smart_transaction(self.db):
                level = (
                    self.db.query(InventoryLevel)
                    .filter(InventoryLevel.product_id == product_id)
                    .with_for_update()
                    .populate_existing()
                    .first()
                )
                if not level:
                    raise NotFound(
                        "Inventory level not found", details={"productId": product_id}
                    )
                level.quantity = level.quantity + qty
                level.updated_at = self._now()
                self._append(product_id, MOVEMENT_IN, qty, (reason or "").strip() or None)
                self.db.flush()
                new_qty = level.quantity
        log.info(f"stock-in product={product_id} qty={qty} on_hand={new_qty}")
        return new_qty

    def decrement_for_order(self, level: InventoryLevel, qty: int, order_no: str) -> None:
        """
        Take `qty` off an already-loaded level and append the OUT movement.

        Only the checkout engine calls this, inside its own transaction and after
        it has validated stock for the whole cart; there is no route for it.
        """
        if qty <= 0:
            raise InvalidQuantity("Quantity must be positive", details={"qty": qty})
        if level.quantity < qty:
            # checkout validated already; reaching this means a lost race
            raise InsufficientStock(
                "Insufficient stock",
                details={
                    "productId": level.product_id,
                    "qtyOnHand": level.quantity,
                    "requested": qty,
                },
            )
        level.quantity = level.quantity - qty
        level.updated_at = self._now()
        self._append(level.product_id, MOVEMENT_OUT, qty, f"Checkout {order_no}")

    def list_movements(self, product_id: str) -> List[InventoryMovement]:
        require(self.role, INVENTORY_READ)
        if not self.db.query(Product.id).filter(Product.id == product_id).first():
            raise ProductNotFound("Product not found", details={"productId": product_id})
        return (
            self.db.query(InventoryMovement)
            .filter(InventoryMovement.product_id == product_id)
            .order_by(InventoryMovement.created_at.asc(), InventoryMovement.id.asc())
            .all()
        )

    def reconcile(self, product_id: str) -> Tuple[int, int]:
        """Return (quantity on hand, sum of IN minus sum of OUT). They must be equal."""
        require(self.role, INVENTORY_READ)
        level = (
            self.db.query(InventoryLevel)
            .filter(InventoryLevel.product_id == product_id)
            .first()
        )
        if not level:
            raise NotFound("Inventory level not found", details={"productId": product_id})
        signed = case(
            (InventoryMovement.movement_type == MOVEMENT_IN, InventoryMovement.qty),
            else_=-InventoryMovement.qty,
        )
        ledger = (
            self.db.query(func.coalesce(func.sum(signed), 0))
            .filter(InventoryMovement.product_id == product_id)
            .scalar()
            or 0
        )
        return level.quantity, int(ledger)
