import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from retailops.db import Base


class BarcodeFormat(str, enum.Enum):
    QR_CODE = "QR_CODE"
    CODE_128 = "CODE_128"
    CODE_39 = "CODE_39"
    EAN_13 = "EAN_13"
    EAN_8 = "EAN_8"
    ITF = "ITF"
    UPC_A = "UPC_A"
    PDF_417 = "PDF_417"
    DATA_MATRIX = "DATA_MATRIX"


class BarcodeEntry(Base):
    __tablename__ = "barcodes"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id = Column(
        String(36), ForeignKey("products.id"), nullable=False, index=True
    )
    format = Column(String(32), nullable=False, default=BarcodeFormat.CODE_128.value)
    code_value = Column(String(256), nullable=False, index=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    product = relationship("Product", back_populates="barcodes")

    __table_args__ = (
        UniqueConstraint("format", "code_value", name="uq_barcodes_format_code"),
        # at most one primary barcode per product
        Index(
            "uq_barcodes_one_primary",
            "product_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )
