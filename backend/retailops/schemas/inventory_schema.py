from datetime import datetime
from typing import Optional

from retailops.schemas.product_schema import _CamelModel


class StockInIn(_CamelModel):
    product_id: str
    qty: int
    reason: Optional[str] = None


class MovementOut(_CamelModel):
    id: str
    product_id: str
    movement_type: str
    qty: int
    reason: Optional[str] = None
    created_at: datetime
