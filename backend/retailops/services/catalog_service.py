from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from retailops.config import settings
from retailops.models.barcode import BarcodeEntry, BarcodeFormat
from retailops.models.product import Product
from retailops.repositories.barcode_repo import BarcodeRepository
from retailops.repositories.product_repo import ProductRepository
from retailops.services.errors import (
    DuplicateBarcode,
    DuplicateSku,
    InvalidInput,
    NotFound,
    ProductNotFound,
    UnsupportedFormat,
)
from retailops.services.inventory_service import InventoryService
from retailops.services.permissions import (
    BARCODE_LOOKUP,
    CATALOG_READ,
    CATALOG_WRITE,
    Role,
    require,
)
from retailops.utils.logging import get_logger
from retailops.utils.money import Number, round2
from retailops.utils.paging import normalize_page
from retailops.utils.transactions import smart_transaction

log = get_logger("catalog")

SUPPORTED_FORMATS = frozenset(f.value for f in BarcodeFormat)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _money(value: Number, field: str) -> Decimal:
    amount = round2(value, field)
    if amount < 0:
        raise InvalidInput(f"{field} must not be negative", details={"field": field})
    return amount


def _non_negative_int(value: int, field: str) -> int:
    if value is None or int(value) < 0:
        raise InvalidInput(f"{field} must not be negative", details={"field": field})
    return int(value)


class CatalogService:
    def __init__(self, db: Session, role: Role = Role.ADMIN):
        self.db = db
        self.role = role
        self.products = ProductRepository(db)
        self.barcodes = BarcodeRepository(db)
        self.inventory = InventoryService(db, role=role)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _require_active(self, product_id: str) -> Product:
        p = self.products.get_active(product_id)
        if not p:
            raise ProductNotFound("Product not found", details={"productId": product_id})
        return p

    def create_product(
        self,
        sku: str,
        name: str,
        price: Number,
        cost: Number = 0,
        category: Optional[str] = None,
        initial_qty: int = 0,
        reorder_level: Optional[int] = None,
    ) -> Product:
        """
        Create a product together with its InventoryLevel and, when initial_qty > 0,
        an "Initial stock" IN movement. All three land in one transaction.
        """
        require(self.role, CATALOG_WRITE)
        sku = _clean(sku)
        name = _clean(name)
        if not sku:
            raise InvalidInput("sku is required", details={"field": "sku"})
        if not name:
            raise InvalidInput("name is required", details={"field": "name"})
        price = _money(price, "price")
        cost = _money(cost, "cost")
        initial_qty = _non_negative_int(initial_qty, "initialQty")
        if reorder_level is None:
            reorder_level = settings.DEFAULT_REORDER_LEVEL
        reorder_level = _non_negative_int(reorder_level, "reorderLevel")

        with smart_transaction(self.db):
            if self.products.get_by_sku(sku):
                raise DuplicateSku(f"SKU already exists: {sku}", details={"sku": sku})
            now = self._now()
            p = Product(
                sku=sku,
                name=name,
                category=_clean(category),
                price=price,
                cost=cost,
                active=True,
                created_at=now,
                updated_at=now,
            )
            self.db.add(p)
            self.db.flush()
            p.inventory_level = self.inventory.open_level(p, initial_qty, reorder_level)
            self.db.flush()
        log.info(f"product created sku={sku} id={p.id} initial_qty={initial_qty}")
        return p

    def update_product(
        self,
        product_id: str,
        name: Optional[str] = None,
        category: Optional[str] = None,
        price: Optional[Number] = None,
        cost: Optional[Number] = None,
        reorder_level: Optional[int] = None,
    ) -> Product:
        """Omitted fields keep their value. The SKU can't be changed."""
        require(self.role, CATALOG_WRITE)
        with smart_transaction(self.db):
            p = self._require_active(product_id)
            if name is not None:
                name = _clean(name)
                if not name:
                    raise InvalidInput("name must not be blank", details={"field": "name"})
                p.name = name
            if category is not None:
                p.category = _clean(category)
            if price is not None:
                p.price = _money(price, "price")
            if cost is not None:
                p.cost = _money(cost, "cost")
            if reorder_level is not None:
                reorder_level = _non_negative_int(reorder_level, "reorderLevel")
                level = p.inventory_level
                level.reorder_level = reorder_level
                level.updated_at = self._now()
            p.updated_at = self._now()
            self.db.flush()
        log.info(f"product updated id={product_id}")
        return p

    def deactivate_product(self, product_id: str) -> Product:
        """Soft delete. Movements and order lines keep referencing the row."""
        require(self.role, CATALOG_WRITE)
        with smart_transaction(self.db):
            p = self._require_active(product_id)
            p.active = False
            p.updated_at = self._now()
            self.db.flush()
        log.info(f"product deactivated id={product_id} sku={p.sku}")
        return p

    def get_product(self, product_id: str) -> Product:
        require(self.role, CATALOG_READ)
        return self._require_active(product_id)

    def list_products(
        self, keyword: Optional[str] = None, page: int = 1, page_size: int = 20
    ) -> Tuple[List[Product], int]:
        require(self.role, CATALOG_READ)
        page, page_size = normalize_page(page, page_size)
        return self.products.list(keyword=_clean(keyword), page=page, size=page_size)

    def add_barcode(
        self, product_id: str, fmt: str, code_value: str, is_primary: bool = False
    ) -> BarcodeEntry:
        """
        Register a barcode. When is_primary is set the product's other barcodes lose
        their primary flag in the same transaction as the insert, so no reader ever
        sees two primaries.
        """
        require(self.role, CATALOG_WRITE)
        fmt = (fmt or "").strip().upper()
        if fmt not in SUPPORTED_FORMATS:
            raise UnsupportedFormat(
                f"Unsupported barcode format: {fmt}",
                details={"format": fmt, "supported": sorted(SUPPORTED_FORMATS)},
            )
        code_value = _clean(code_value)
        if not code_value:
            raise InvalidInput("codeValue is required", details={"field": "codeValue"})

        with smart_transaction(self.db):
            self._require_active(product_id)
            if self.barcodes.get(fmt, code_value):
                raise DuplicateBarcode(
                    f"Barcode already exists: {fmt} {code_value}",
                    details={"format": fmt, "codeValue": code_value},
                )
            if is_primary:
                self.barcodes.clear_primary(product_id)
            b = self.barcodes.add(product_id, fmt, code_value, bool(is_primary))
        log.info(f"barcode added product={product_id} {fmt}:{code_value} primary={bool(is_primary)}")
        return b

    def list_barcodes(self, product_id: str) -> List[BarcodeEntry]:
        require(self.role, CATALOG_READ)
        self._require_active(product_id)
        return self.barcodes.for_product(product_id)

    def find_by_barcode(self, code_value: str) -> BarcodeEntry:
        """Resolve a scanned value; the returned entry has `.product` loaded."""
        require(self.role, BARCODE_LOOKUP)
        code_value = _clean(code_value)
        b = self.barcodes.find_active_match(code_value) if code_value else None
        if not b:
            raise NotFound("Barcode not found", details={"codeValue": code_value})
        return b

