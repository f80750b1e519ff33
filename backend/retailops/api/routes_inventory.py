from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retailops.api.deps import get_role
from retailops.db import get_db
from retailops.schemas.inventory_schema import MovementOut, StockInIn
from retailops.services.inventory_service import InventoryService
from retailops.services.permissions import Role
from retailops.services.report_service import ReportService

router = APIRouter(tags=["inventory"])


@router.post("/in")
def stock_in(payload: StockInIn, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    """
    payload: { "productId": "...", "qty": 3, "reason": "supplier delivery" }
    returns the new quantity on hand
    """
    svc = InventoryService(db, role=role)
    qty = svc.stock_in(payload.product_id, payload.qty, payload.reason)
    return {"productId": payload.product_id, "qtyOnHand": qty}


@router.get("/low-stock")
def low_stock(db: Session = Depends(get_db), role: Role = Depends(get_role)):
    return ReportService(db, role=role).low_stock()


@router.get("/{product_id}/movements")
def movements(product_id: str, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    rows = InventoryService(db, role=role).list_movements(product_id)
    return [MovementOut.model_validate(m).model_dump(by_alias=True) for m in rows]
