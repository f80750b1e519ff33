from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from retailops.models.order import SalesOrder, SalesOrderItem


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: str) -> Optional[SalesOrder]:
        return (
            self.db.query(SalesOrder)
            .options(selectinload(SalesOrder.items))
            .filter(SalesOrder.id == order_id)
            .first()
        )

    def page(self, page: int, size: int) -> Tuple[List[Tuple[SalesOrder, int]], int]:
        """Newest first; each row is (order, number of line items)."""
        total = self.db.query(func.count(SalesOrder.id)).scalar() or 0
        item_count = func.count(SalesOrderItem.id).label("item_count")
        rows = (
            self.db.query(SalesOrder, item_count)
            .outerjoin(SalesOrderItem, SalesOrderItem.order_id == SalesOrder.id)
            .group_by(SalesOrder.id)
            .order_by(SalesOrder.created_at.desc(), SalesOrder.order_no.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return [(o, int(n)) for o, n in rows], total
