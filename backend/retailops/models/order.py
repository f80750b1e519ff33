from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from retailops.db import Base

PAYMENT_CASH = "CASH"
PAYMENT_CARD = "CARD"


class SalesOrder(Base):
    __tablename__ = "sales_orders"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_no = Column(String(32), unique=True, nullable=False, index=True)
    payment_method = Column(String(8), nullable=False)  # CASH, CARD
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False)
    change_amount = Column(Numeric(12, 2), nullable=False, default=0)
    note = Column(Text, nullable=True)
    created_at = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )

    items = relationship(
        "SalesOrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.line_no",
    )


class SalesOrderItem(Base):
    __tablename__ = "sales_order_items"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id = Column(
        String(36), ForeignKey("sales_orders.id"), nullable=False, index=True
    )
    line_no = Column(Integer, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    # snapshots taken at checkout; independent of later catalogue edits
    sku = Column(String(64), nullable=False)
    name = Column(String(256), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    qty = Column(Integer, nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    order = relationship("SalesOrder", back_populates="items")
