from typing import Dict

from sqlalchemy.orm import Session

from retailops.models.order import SalesOrder
from retailops.repositories.order_repo import OrderRepository
from retailops.services.errors import OrderNotFound
from retailops.services.permissions import ORDERS_READ, Role, require
from retailops.utils.paging import normalize_page


class OrderService:
    """Read-only views over committed sales orders."""

    def __init__(self, db: Session, role: Role = Role.ADMIN):
        self.db = db
        self.role = role
        self.repo = OrderRepository(db)

    def list_orders(self, page: int = 1, page_size: int = 20) -> Dict:
        require(self.role, ORDERS_READ)
        page, page_size = normalize_page(page, page_size)
        rows, total = self.repo.page(page, page_size)
        return {
            "page": page,
            "pageSize": page_size,
            "total": total,
            "items": [
                {
                    "id": o.id,
                    "orderNo": o.order_no,
                    "paymentMethod": o.payment_method,
                    "subtotal": o.subtotal,
                    "discount": o.discount,
                    "total": o.total,
                    "paidAmount": o.paid_amount,
                    "changeAmount": o.change_amount,
                    "createdAt": o.created_at,
                    "itemCount": n,
                }
                for o, n in rows
            ],
        }

    def get_order(self, order_id: str) -> SalesOrder:
        require(self.role, ORDERS_READ)
        o = self.repo.get(order_id)
        if not o:
            raise OrderNotFound("Order not found", details={"orderId": order_id})
        return o
