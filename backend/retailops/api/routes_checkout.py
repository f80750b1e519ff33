from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retailops.api.deps import get_role
from retailops.db import get_db
from retailops.schemas.order_schema import CheckoutIn, OrderOut
from retailops.services.checkout_service import CheckoutService
from retailops.services.errors import Conflict
from retailops.services.permissions import Role
from retailops.utils.logging import get_logger

router = APIRouter(tags=["checkout"])
log = get_logger("checkout")


@router.post("", summary="Check out a cart")
def checkout(payload: CheckoutIn, db: Session = Depends(get_db), role: Role = Depends(get_role)):
    items = [{"product_id": it.product_id, "qty": it.qty} for it in payload.items]

    def _run():
        return CheckoutService(db, role=role).checkout(
            items,
            payment_method=payload.payment_method,
            paid_amount=payload.paid_amount,
            discount=payload.discount,
            note=payload.note,
        )

    try:
        order = _run()
    except Conflict as e:
        # order-number collision, lock timeout or a busy store: nothing was committed
        log.warning(f"checkout conflict, retrying once: {e.message}")
        order = _run()
    return OrderOut.model_validate(order).model_dump(by_alias=True)
