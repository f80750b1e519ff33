from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from retailops.services.checkout_service import CheckoutService
from retailops.services.errors import OrderNotFound
from retailops.services.order_service import OrderService
from retailops.services.permissions import Role


def _clock(start):
    state = {"ts": start}

    def tick():
        state["ts"] = state["ts"] + timedelta(seconds=1)
        return state["ts"]

    return tick


def test_list_orders_newest_first(db, make_product):
    a = make_product(sku="A", price="10.00", initial_qty=50)
    b = make_product(sku="B", price="2.50", initial_qty=50)
    checkout = CheckoutService(db, clock=_clock(datetime(2024, 3, 1, tzinfo=timezone.utc)))
    first = checkout.checkout([{"product_id": a.id, "qty": 1}], "CASH", "10")
    second = checkout.checkout(
        [{"product_id": a.id, "qty": 1}, {"product_id": b.id, "qty": 2}], "CASH", "20"
    )

    page = OrderService(db, role=Role.CASHIER).list_orders()
    assert page["total"] == 2
    assert page["page"] == 1
    assert [o["orderNo"] for o in page["items"]] == [second.order_no, first.order_no]
    assert [o["itemCount"] for o in page["items"]] == [2, 1]
    assert page["items"][0]["total"] == Decimal("15.00")
    assert page["items"][0]["changeAmount"] == Decimal("5.00")


def test_list_orders_paging_is_clamped(db, make_product):
    a = make_product(sku="A", price="1.00", initial_qty=50)
    checkout = CheckoutService(db, clock=_clock(datetime(2024, 3, 1, tzinfo=timezone.utc)))
    for _ in range(3):
        checkout.checkout([{"product_id": a.id, "qty": 1}], "CASH", "1")

    svc = OrderService(db)
    page = svc.list_orders(page=2, page_size=2)
    assert page["total"] == 3
    assert len(page["items"]) == 1

    page = svc.list_orders(page=0, page_size=1000)
    assert page["page"] == 1
    assert page["pageSize"] == 100
    assert len(page["items"]) == 3


def test_get_order_with_items(db, make_product):
    a = make_product(sku="A", price="10.00", initial_qty=5)
    placed = CheckoutService(db).checkout([{"product_id": a.id, "qty": 2}], "CASH", "20", note=" table 4 ")

    order = OrderService(db).get_order(placed.id)
    assert order.order_no == placed.order_no
    assert order.note == "table 4"
    assert [(i.sku, i.qty, i.line_total) for i in order.items] == [("A", 2, Decimal("20.00"))]


def test_get_order_missing(db):
    with pytest.raises(OrderNotFound):
        OrderService(db).get_order("nope")
