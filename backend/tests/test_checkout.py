from datetime import datetime, timezone
from decimal import Decimal

import pytest

from retailops.models.inventory import InventoryLevel, InventoryMovement
from retailops.models.order import SalesOrder, SalesOrderItem
from retailops.services.checkout_service import CheckoutService, format_order_no
from retailops.services.errors import (
    CardAmountMismatch,
    Conflict,
    DiscountExceedsSubtotal,
    InsufficientPayment,
    InsufficientStock,
    InvalidDiscount,
    InvalidInput,
    InvalidQuantity,
    NotFound,
    ProductNotFound,
)
from retailops.services.catalog_service import CatalogService
from retailops.services.inventory_service import InventoryService
from retailops.services.permissions import Role


def _qty(db, product_id):
    db.expire_all()
    return db.query(InventoryLevel).filter(InventoryLevel.product_id == product_id).one().quantity


def _order_count(db):
    return db.query(SalesOrder).count()


@pytest.fixture
def sku1(db, make_product):
    # created with 5, received 3 more: 8 on hand
    p = make_product(sku="SKU-1", price="100.00", initial_qty=5)
    InventoryService(db).stock_in(p.id, 3)
    return p


def test_cash_checkout(db, sku1):
    order = CheckoutService(db, role=Role.CASHIER).checkout(
        [{"product_id": sku1.id, "qty": 2}], "CASH", "250.00"
    )
    assert order.order_no.startswith("SO")
    assert order.subtotal == Decimal("200.00")
    assert order.total == Decimal("200.00")
    assert order.change_amount == Decimal("50.00")
    assert order.paid_amount == Decimal("250.00")
    assert _qty(db, sku1.id) == 6

    outs = db.query(InventoryMovement).filter(InventoryMovement.movement_type == "OUT").all()
    assert [(m.qty, m.reason) for m in outs] == [(2, f"Checkout {order.order_no}")]

    [item] = order.items
    assert (item.line_no, item.sku, item.unit_price, item.qty, item.line_total) == (
        1,
        "SKU-1",
        Decimal("100.00"),
        2,
        Decimal("200.00"),
    )


def test_insufficient_stock_changes_nothing(db, sku1):
    with pytest.raises(InsufficientStock) as exc:
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 999}], "CASH", "1000000")
    assert exc.value.details["qtyOnHand"] == 8
    assert exc.value.details["requested"] == 999
    assert exc.value.details["sku"] == "SKU-1"
    assert _qty(db, sku1.id) == 8
    assert _order_count(db) == 0


def test_card_must_match_total(db, sku1):
    with pytest.raises(CardAmountMismatch):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 2}], "CARD", "199.99")
    assert _qty(db, sku1.id) == 8
    assert _order_count(db) == 0


def test_card_overpayment_is_also_a_mismatch(db, sku1):
    with pytest.raises(CardAmountMismatch):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "card", "100.01")


def test_card_exact_amount_gives_no_change(db, sku1):
    order = CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "card", "100")
    assert order.payment_method == "CARD"
    assert order.change_amount == Decimal("0.00")


def test_cash_underpayment(db, sku1):
    with pytest.raises(InsufficientPayment):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 2}], "CASH", "199.99")
    assert _qty(db, sku1.id) == 8


def test_failure_on_second_line_rolls_back_first(db, make_product):
    a = make_product(sku="A", price="10.00", initial_qty=10)
    b = make_product(sku="B", price="10.00", initial_qty=1)
    with pytest.raises(InsufficientStock) as exc:
        CheckoutService(db).checkout(
            [{"product_id": a.id, "qty": 3}, {"product_id": b.id, "qty": 2}], "CASH", "100"
        )
    assert exc.value.details["sku"] == "B"
    assert _qty(db, a.id) == 10
    assert _qty(db, b.id) == 1
    assert db.query(InventoryMovement).filter(InventoryMovement.movement_type == "OUT").count() == 0
    assert db.query(SalesOrderItem).count() == 0


def test_repeated_product_lines_are_merged(db, make_product):
    a = make_product(sku="A", price="10.00", initial_qty=10)
    b = make_product(sku="B", price="5.00", initial_qty=10)
    order = CheckoutService(db).checkout(
        [
            {"product_id": a.id, "qty": 1},
            {"productId": b.id, "qty": 2},
            {"product_id": a.id, "qty": 2},
        ],
        "CASH",
        "50",
    )
    assert [(i.sku, i.qty, i.line_no) for i in order.items] == [("A", 3, 1), ("B", 2, 2)]
    assert order.subtotal == Decimal("40.00")
    assert _qty(db, a.id) == 7


def test_merged_quantity_is_checked_against_stock(db, make_product):
    a = make_product(sku="A", price="10.00", initial_qty=3)
    with pytest.raises(InsufficientStock):
        CheckoutService(db).checkout(
            [{"product_id": a.id, "qty": 2}, {"product_id": a.id, "qty": 2}], "CASH", "100"
        )


def test_discount_applied(db, sku1):
    order = CheckoutService(db).checkout(
        [{"product_id": sku1.id, "qty": 2}], "CASH", "200", discount="20.005"
    )
    assert order.discount == Decimal("20.01")
    assert order.total == Decimal("179.99")
    assert order.change_amount == Decimal("20.01")


def test_negative_discount(db, sku1):
    with pytest.raises(InvalidDiscount):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "100", discount=-1)


def test_discount_larger_than_subtotal(db, sku1):
    with pytest.raises(DiscountExceedsSubtotal):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "100", discount="100.01")
    assert _order_count(db) == 0


def test_full_discount_is_allowed(db, sku1):
    order = CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "0", discount="100")
    assert order.total == Decimal("0.00")


def test_line_totals_round_half_up(db):
    p = CatalogService(db).create_product(sku="R", name="Rounding", price="0.125", initial_qty=10)
    # stored price is already rounded to 0.13
    order = CheckoutService(db).checkout([{"product_id": p.id, "qty": 3}], "CASH", "1")
    assert order.items[0].unit_price == Decimal("0.13")
    assert order.subtotal == Decimal("0.39")
    assert order.change_amount == Decimal("0.61")


@pytest.mark.parametrize(
    "items, exc",
    [
        ([], InvalidInput),
        ([{"product_id": "x", "qty": 0}], InvalidQuantity),
        ([{"product_id": "x", "qty": -3}], InvalidQuantity),
        ([{"product_id": "x", "qty": 1.5}], InvalidQuantity),
        ([{"product_id": "x", "qty": True}], InvalidQuantity),
        ([{"qty": 1}], InvalidInput),
    ],
)
def test_bad_cart(db, items, exc):
    with pytest.raises(exc):
        CheckoutService(db).checkout(items, "CASH", "10")


def test_unknown_payment_method(db, sku1):
    with pytest.raises(InvalidInput):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "VOUCHER", "100")


def test_unknown_product(db, sku1):
    with pytest.raises(ProductNotFound):
        CheckoutService(db).checkout(
            [{"product_id": sku1.id, "qty": 1}, {"product_id": "missing", "qty": 1}], "CASH", "500"
        )
    assert _qty(db, sku1.id) == 8


def test_inactive_product_cannot_be_sold(db, sku1):
    CatalogService(db).deactivate_product(sku1.id)
    with pytest.raises(ProductNotFound):
        CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "100")


def test_line_snapshot_survives_price_change(db, sku1):
    order = CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "100")
    CatalogService(db).update_product(sku1.id, price="150.00", name="Renamed")
    db.expire_all()
    item = db.query(SalesOrderItem).filter(SalesOrderItem.order_id == order.id).one()
    assert item.unit_price == Decimal("100.00")
    assert item.name == "Product SKU-1"


def test_order_number_collision_is_a_conflict(db, sku1):
    fixed = datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)
    svc = CheckoutService(db, clock=lambda: fixed)
    first = svc.checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "100")
    assert first.order_no == "SO20240501123045123"

    with pytest.raises(Conflict):
        svc.checkout([{"product_id": sku1.id, "qty": 1}], "CASH", "100")
    assert _qty(db, sku1.id) == 7
    assert _order_count(db) == 1


def test_format_order_no_uses_utc():
    from datetime import timedelta

    ts = datetime(2024, 1, 1, 8, 0, 0, 5000, tzinfo=timezone(timedelta(hours=8)))
    assert format_order_no(ts) == "SO20240101000000005"


@pytest.mark.parametrize("odd_id", ["x" * 300, "../../etc/passwd", "a/b\\c:d"])
def test_unusual_product_ids_are_just_not_found(db, odd_id):
    with pytest.raises(ProductNotFound):
        CheckoutService(db).checkout([{"product_id": odd_id, "qty": 1}], "CASH", "5")
    with pytest.raises(NotFound):
        InventoryService(db).stock_in(odd_id, 1)


def test_discount_and_payment_round_half_up(db, sku1):
    order = CheckoutService(db).checkout(
        [{"product_id": sku1.id, "qty": 1}], "CASH", "100.005", discount="0.005"
    )
    assert order.discount == Decimal("0.01")
    assert order.total == Decimal("99.99")
    assert order.paid_amount == Decimal("100.01")
    assert order.change_amount == Decimal("0.02")


def test_card_paid_amount_is_rounded_before_matching(db, sku1):
    order = CheckoutService(db).checkout([{"product_id": sku1.id, "qty": 1}], "CARD", "99.995")
    assert order.paid_amount == Decimal("100.00")
    assert order.change_amount == Decimal("0.00")
