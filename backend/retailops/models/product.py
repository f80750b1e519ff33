from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Numeric, String
from sqlalchemy.orm import relationship

from retailops.db import Base


def _uuid() -> str:
    return str(uuid4())


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_uuid)
    sku = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(256), nullable=False)
    category = Column(String(128), nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    cost = Column(Numeric(12, 2), nullable=False, default=0)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    barcodes = relationship("BarcodeEntry", back_populates="product")
    inventory_level = relationship(
        "InventoryLevel", back_populates="product", uselist=False
    )

    @property
    def qty_on_hand(self) -> int:
        return self.inventory_level.quantity if self.inventory_level else 0

    @property
    def reorder_level(self) -> int:
        return self.inventory_level.reorder_level if self.inventory_level else 0

    def __repr__(self):
        return f"<Product sku={self.sku} name={self.name}>"
