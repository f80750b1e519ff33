# backend/retailops/schemas/product_schema.py
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )


class ProductCreateIn(_CamelModel):
    sku: str
    name: str
    category: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    cost: Decimal = Field(Decimal("0"), ge=0)
    initial_qty: int = Field(0, ge=0)
    reorder_level: Optional[int] = Field(None, ge=0)


class ProductUpdateIn(_CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    reorder_level: Optional[int] = Field(None, ge=0)


class ProductOut(_CamelModel):
    id: str
    sku: str
    name: str
    category: Optional[str] = None
    price: Decimal
    cost: Decimal
    active: bool
    qty_on_hand: int
    reorder_level: int


class BarcodeIn(_CamelModel):
    format: str
    code_value: str
    is_primary: bool = False


class BarcodeOut(_CamelModel):
    id: str
    product_id: str
    format: str
    code_value: str
    is_primary: bool


class BarcodeLookupOut(_CamelModel):
    product_id: str
    sku: str
    name: str
    price: Decimal
    qty_on_hand: int
    format: str
    code_value: str
    is_primary: bool
