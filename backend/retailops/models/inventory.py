from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from retailops.db import Base

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"


class InventoryLevel(Base):
    __tablename__ = "inventory_levels"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id = Column(
        String(36), ForeignKey("products.id"), nullable=False, unique=True, index=True
    )
    quantity = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=10)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    product = relationship("Product", back_populates="inventory_level")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_levels_quantity"),
        CheckConstraint("reorder_level >= 0", name="ck_inventory_levels_reorder"),
    )


class InventoryMovement(Base):
    """Append-only audit row; one per quantity change."""

    __tablename__ = "inventory_movements"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id = Column(
        String(36), ForeignKey("products.id"), nullable=False, index=True
    )
    movement_type = Column(String(8), nullable=False)  # IN, OUT
    qty = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_inventory_movements_qty"),
        CheckConstraint(
            "movement_type IN ('IN', 'OUT')", name="ck_inventory_movements_type"
        ),
    )
