from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from retailops.models.inventory import InventoryLevel
from retailops.models.product import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active(self, product_id: str) -> Optional[Product]:
        return (
            self.db.query(Product)
            .options(joinedload(Product.inventory_level))
            .filter(Product.id == product_id, Product.active == True)
            .first()
        )

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Exact, case-sensitive match; inactive products included since SKUs stay reserved."""
        return self.db.query(Product).filter(Product.sku == sku).first()

    def get_active_with_levels(
        self, product_ids: Iterable[str], lock: bool = False
    ) -> Dict[str, Tuple[Product, InventoryLevel]]:
        """
        Load active products and their inventory levels in one query.
        With lock=True the level rows are selected FOR UPDATE (ignored by SQLite).
        """
        ids = list(set(product_ids))
        if not ids:
            return {}
        qry = (
            self.db.query(Product, InventoryLevel)
            .join(InventoryLevel, InventoryLevel.product_id == Product.id)
            .filter(Product.id.in_(ids), Product.active == True)
        )
        if lock:
            qry = qry.with_for_update(of=InventoryLevel).populate_existing()
        return {p.id: (p, lvl) for p, lvl in qry.all()}

    def list(
        self, keyword: Optional[str] = None, page: int = 1, size: int = 20
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product).filter(Product.active == True)
        if keyword:
            like = f"%{keyword.strip().lower()}%"
            query = query.filter(
                or_(func.lower(Product.sku).like(like), func.lower(Product.name).like(like))
            )
        total = query.with_entities(func.count(Product.id)).scalar() or 0
        items = (
            query.options(joinedload(Product.inventory_level))
            .order_by(Product.name, Product.sku)
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return items, total

    def low_stock(self) -> List[Tuple[Product, InventoryLevel]]:
        return (
            self.db.query(Product, InventoryLevel)
            .join(InventoryLevel, InventoryLevel.product_id == Product.id)
            .filter(
                Product.active == True,
                InventoryLevel.quantity <= InventoryLevel.reorder_level,
            )
            .order_by(InventoryLevel.quantity.asc(), Product.sku.asc())
            .all()
        )

    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0
