from typing import Dict, List

from sqlalchemy.orm import Session

from retailops.repositories.product_repo import ProductRepository
from retailops.services.permissions import INVENTORY_READ, Role, require
from retailops.utils.logging import get_logger

log = get_logger("reports")


class ReportService:
    def __init__(self, db: Session, role: Role = Role.ADMIN):
        self.db = db
        self.role = role
        self.products = ProductRepository(db)

    def low_stock(self) -> Dict:
        """
        Active products whose quantity is at or below their reorder level,
        most urgent (lowest quantity) first. Not paginated.
        """
        require(self.role, INVENTORY_READ)
        items: List[Dict] = [
            {
                "productId": p.id,
                "sku": p.sku,
                "name": p.name,
                "qtyOnHand": lvl.quantity,
                "reorderLevel": lvl.reorder_level,
            }
            for p, lvl in self.products.low_stock()
        ]
        return {"count": len(items), "items": items}

    def sweep_low_stock(self) -> int:
        """Scheduled job body: log one warning per low-stock product."""
        report = self.low_stock()
        for it in report["items"]:
            log.warning(
                f"low stock sku={it['sku']} on_hand={it['qtyOnHand']} reorder_level={it['reorderLevel']}"
            )
        return report["count"]
