from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from retailops.schemas.product_schema import _CamelModel


class CartLineIn(_CamelModel):
    product_id: str
    qty: int = Field(..., gt=0)


class CheckoutIn(_CamelModel):
    items: List[CartLineIn] = Field(..., min_length=1)
    payment_method: str = "CASH"
    paid_amount: Decimal
    discount: Optional[Decimal] = None
    note: Optional[str] = None


class OrderItemOut(_CamelModel):
    id: str
    product_id: str
    sku: str
    name: str
    unit_price: Decimal
    qty: int
    line_total: Decimal


class OrderOut(_CamelModel):
    id: str
    order_no: str
    payment_method: str
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    paid_amount: Decimal
    change_amount: Decimal
    note: Optional[str] = None
    created_at: datetime
    items: List[OrderItemOut]
