from fastapi import APIRouter, Depends, Query, Response, status
from typing import Optional
from sqlalchemy.orm import Session
from retailops.api.deps import get_role
from retailops.db import get_db
from retailops.schemas.product_schema import (
    BarcodeIn,
    BarcodeOut,
    ProductCreateIn,
    ProductOut,
    ProductUpdateIn,
)
from retailops.services.catalog_service import CatalogService
from retailops.services.permissions import Role

router = APIRouter(tags=["catalogue"])


def _product(p) -> dict:
    return ProductOut.model_validate(p).model_dump(by_alias=True)


@router.get("", summary="List products")
def list_products(
    keyword: Optional[str] = Query(None, description="matches SKU or name"),
    page: int = Query(1),
    page_size: int = Query(20, alias="pageSize"),
    db: Session = Depends(get_db),
    role: Role = Depends(get_role),
):
    svc = CatalogService(db, role=role)
    items, total = svc.list_products(keyword=keyword, page=page, page_size=page_size)
    return {"items": [_product(p) for p in items], "total": total}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create product")
def create_product(
    payload: ProductCreateIn,
    db: Session = Depends(get_db),
    role: Role = Depends(get_role),
):
    svc = CatalogService(db, role=role)
    p = svc.create_product(
        sku=payload.sku,
        name=payload.name,
        category=payload.category,
        price=payload.price,
        cost=payload.cost,
        initial_qty=payload.initial_qty,
        reorder_level=payload.reorder_level,
    )
    return _product(p)


@router.get("/{product_id}", summary="Get product")
def get_product(product_id: str, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    return _product(CatalogService(db, role=role).get_product(product_id))


@router.put("/{product_id}", summary="Update product")
def update_product(
    product_id: str,
    payload: ProductUpdateIn,
    db: Session = Depends(get_db),
    role: Role = Depends(get_role),
):
    svc = CatalogService(db, role=role)
    p = svc.update_product(
        product_id,
        name=payload.name,
        category=payload.category,
        price=payload.price,
        cost=payload.cost,
        reorder_level=payload.reorder_level,
    )
    return _product(p)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate product (soft delete)",
)
def deactivate_product(product_id: str, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    CatalogService(db, role=role).deactivate_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{product_id}/barcodes", summary="List product barcodes")
def list_barcodes(product_id: str, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    barcodes = CatalogService(db, role=role).list_barcodes(product_id)
    return [BarcodeOut.model_validate(b).model_dump(by_alias=True) for b in barcodes]


@router.post(
    "/{product_id}/barcodes",
    status_code=status.HTTP_201_CREATED,
    summary="Register a barcode",
)
def add_barcode(
    product_id: str,
    payload: BarcodeIn,
    db: Session = Depends(get_db),
    role: Role = Depends(get_role),
):
    svc = CatalogService(db, role=role)
    b = svc.add_barcode(product_id, payload.format, payload.code_value, payload.is_primary)
    return BarcodeOut.model_validate(b).model_dump(by_alias=True)

