from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from retailops.models.order import PAYMENT_CARD, PAYMENT_CASH, SalesOrder, SalesOrderItem
from retailops.repositories.product_repo import ProductRepository
from retailops.services.errors import (
    BusinessRuleViolation,
    CardAmountMismatch,
    DiscountExceedsSubtotal,
    InsufficientPayment,
    InsufficientStock,
    InvalidDiscount,
    InvalidInput,
    InvalidQuantity,
    ProductNotFound,
)
from retailops.services.inventory_service import InventoryService
from retailops.services.permissions import CHECKOUT, Role, require
from retailops.utils.logging import get_logger
from retailops.utils.money import ZERO, Number, round2
from retailops.utils.transactions import smart_transaction, stock_locks

log = get_logger("checkout")

PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD)


def format_order_no(ts: datetime) -> str:
    # SO + UTC yyyymmddHHMMSS + milliseconds
    ts = ts.astimezone(timezone.utc) if ts.tzinfo else ts
    return "SO" + ts.strftime("%Y%m%d%H%M%S") + f"{ts.microsecond // 1000:03d}"


class CheckoutService:
    """
    Turns a cart into a committed SalesOrder.

    The whole checkout is one transaction: stock and payment are validated for
    every line before anything is written, and any failure rolls back the order,
    its items, the level decrements and the OUT movements together. Concurrent
    checkouts touching the same product are serialized by per-product locks held
    around the transaction (plus FOR UPDATE on the level rows where supported),
    so the stock check always sees the latest committed quantity.
    """

    def __init__(
        self,
        db: Session,
        role: Role = Role.ADMIN,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.role = role
        self.products = ProductRepository(db)
        self.inventory = InventoryService(db, role=role)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _merge_lines(self, items: List[Dict]) -> Dict[str, int]:
        if not items:
            raise InvalidInput("Cart is empty", details={"field": "items"})
        merged: Dict[str, int] = {}
        for it in items:
            pid = it.get("product_id") or it.get("productId")
            if not pid:
                raise InvalidInput("productId is required", details={"field": "productId"})
            qty = it.get("qty")
            if not isinstance(qty, int) or isinstance(qty, bool) or qty <= 0:
                raise InvalidQuantity(
                    "Quantity must be a positive integer",
                    details={"productId": pid, "qty": qty},
                )
            # first occurrence fixes the line's position
            merged[pid] = merged.get(pid, 0) + qty
        return merged

    def checkout(
        self,
        items: List[Dict],
        payment_method: str,
        paid_amount: Number,
        discount: Optional[Number] = None,
        note: Optional[str] = None,
    ) -> SalesOrder:
        """
        items: list of {"product_id": str, "qty": int}; repeated products are merged.
        Returns the persisted order with its line snapshots.
        """
        require(self.role, CHECKOUT)
        merged = self._merge_lines(items)
        method = (payment_method or "").strip().upper()
        if method not in PAYMENT_METHODS:
            raise InvalidInput(
                f"Unsupported payment method: {payment_method}",
                details={"paymentMethod": payment_method, "supported": list(PAYMENT_METHODS)},
            )
        if paid_amount is None:
            raise InvalidInput("paidAmount is required", details={"field": "paidAmount"})

        try:
            order = self._commit(merged, method, paid_amount, discount, note)
        except (BusinessRuleViolation, ProductNotFound) as e:
            log.warning(f"checkout rejected {e.code}: {e.details}")
            raise
        log.info(
            f"order committed {order.order_no} lines={len(order.items)} total={order.total} method={method}"
        )
        return order

    def _commit(self, merged, method, paid_amount, discount, note) -> SalesOrder:
        with stock_locks(merged.keys(), session=self.db):
            with smart_transaction(self.db):
                loaded = self.products.get_active_with_levels(merged.keys(), lock=True)
                for pid in merged:
                    if pid not in loaded:
                        raise ProductNotFound(
                            f"Product not found: {pid}", details={"productId": pid}
                        )

                for pid, qty in merged.items():
                    product, level = loaded[pid]
                    if level.quantity < qty:
                        raise InsufficientStock(
                            f"Insufficient stock for {product.sku}: on hand {level.quantity}, requested {qty}",
                            details={
                                "productId": pid,
                                "sku": product.sku,
                                "qtyOnHand": level.quantity,
                                "requested": qty,
                            },
                        )

                lines = []
                subtotal = ZERO
                for pid, qty in merged.items():
                    product, _ = loaded[pid]
                    unit_price = round2(product.price)
                    line_total = round2(unit_price * qty)
                    subtotal += line_total
                    lines.append((product, unit_price, qty, line_total))
                subtotal = round2(subtotal)

                disc = round2(discount if discount is not None else 0, "discount")
                if disc < 0:
                    raise InvalidDiscount("Discount must not be negative", details={"discount": str(disc)})

                total = round2(subtotal - disc)
                if total < 0:
                    raise DiscountExceedsSubtotal(
                        "Discount exceeds subtotal",
                        details={"subtotal": str(subtotal), "discount": str(disc)},
                    )

                paid = round2(paid_amount, "paidAmount")
                change = self._settle(method, paid, total)

                now = self._clock()
                order = SalesOrder(
                    order_no=format_order_no(now),
                    payment_method=method,
                    subtotal=subtotal,
                    discount=disc,
                    total=total,
                    paid_amount=paid,
                    change_amount=change,
                    note=(note or "").strip() or None,
                    created_at=now,
                )
                for line_no, (product, unit_price, qty, line_total) in enumerate(lines, start=1):
                    order.items.append(
                        SalesOrderItem(
                            line_no=line_no,
                            product_id=product.id,
                            sku=product.sku,
                            name=product.name,
                            unit_price=unit_price,
                            qty=qty,
                            line_total=line_total,
                        )
                    )
                self.db.add(order)
                # a duplicate order_no fails here, before any stock moves
                self.db.flush()

                for pid, qty in merged.items():
                    _, level = loaded[pid]
                    self.inventory.decrement_for_order(level, qty, order.order_no)
                self.db.flush()

        return order

    def _settle(self, method: str, paid: Decimal, total: Decimal) -> Decimal:
        """Validate the tendered amount and return the change due."""
        if method == PAYMENT_CARD:
            # card is charged the exact total; checked before the generic shortfall rule
            if paid != total:
                raise CardAmountMismatch(
                    f"Card payment must equal the total {total}",
                    details={"paidAmount": str(paid), "total": str(total)},
                )
            return ZERO
        if paid < total:
            raise InsufficientPayment(
                f"Insufficient payment: paid {paid}, total {total}",
                details={"paidAmount": str(paid), "total": str(total)},
            )
        return round2(paid - total)
