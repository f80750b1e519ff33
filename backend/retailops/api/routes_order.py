from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from retailops.api.deps import get_role
from retailops.db import get_db
from retailops.schemas.order_schema import OrderOut
from retailops.services.order_service import OrderService
from retailops.services.permissions import Role

router = APIRouter(tags=["orders"])


@router.get("", summary="List orders, newest first")
def list_orders(
    page: int = Query(1),
    page_size: int = Query(20, alias="pageSize"),
    db: Session = Depends(get_db),
    role: Role = Depends(get_role),
):
    return OrderService(db, role=role).list_orders(page=page, page_size=page_size)


@router.get("/{order_id}", summary="Order detail")
def get_order(order_id: str, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    order = OrderService(db, role=role).get_order(order_id)
    return OrderOut.model_validate(order).model_dump(by_alias=True)
