from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from retailops.models.barcode import BarcodeEntry
from retailops.models.product import Product


class BarcodeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, fmt: str, code_value: str) -> Optional[BarcodeEntry]:
        return (
            self.db.query(BarcodeEntry)
            .filter(BarcodeEntry.format == fmt, BarcodeEntry.code_value == code_value)
            .first()
        )

    def for_product(self, product_id: str) -> List[BarcodeEntry]:
        return (
            self.db.query(BarcodeEntry)
            .filter(BarcodeEntry.product_id == product_id)
            .order_by(BarcodeEntry.is_primary.desc(), BarcodeEntry.created_at.asc())
            .all()
        )

    def clear_primary(self, product_id: str) -> int:
        return (
            self.db.query(BarcodeEntry)
            .filter(
                BarcodeEntry.product_id == product_id,
                BarcodeEntry.is_primary == True,
            )
            .update({BarcodeEntry.is_primary: False}, synchronize_session="fetch")
        )

    def find_active_match(self, code_value: str) -> Optional[BarcodeEntry]:
        """Primary matches win, then the most recently registered one."""
        return (
            self.db.query(BarcodeEntry)
            .join(Product, Product.id == BarcodeEntry.product_id)
            .options(joinedload(BarcodeEntry.product).joinedload(Product.inventory_level))
            .filter(BarcodeEntry.code_value == code_value, Product.active == True)
            .order_by(BarcodeEntry.is_primary.desc(), BarcodeEntry.created_at.desc())
            .first()
        )

    def add(self, product_id: str, fmt: str, code_value: str, is_primary: bool) -> BarcodeEntry:
        b = BarcodeEntry(
            product_id=product_id, format=fmt, code_value=code_value, is_primary=is_primary
        )
        self.db.add(b)
        self.db.flush()
        return b
