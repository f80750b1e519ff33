from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retailops.api.deps import get_role
from retailops.db import get_db
from retailops.schemas.product_schema import BarcodeLookupOut
from retailops.services.catalog_service import CatalogService
from retailops.services.permissions import Role

router = APIRouter(tags=["catalogue"])


@router.get("/{code_value}", summary="Find product by barcode")
def find_by_barcode(code_value: str, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    b = CatalogService(db, role=role).find_by_barcode(code_value)
    p = b.product
    return BarcodeLookupOut(
        product_id=p.id,
        sku=p.sku,
        name=p.name,
        price=p.price,
        qty_on_hand=p.qty_on_hand,
        format=b.format,
        code_value=b.code_value,
        is_primary=b.is_primary,
    ).model_dump(by_alias=True)
