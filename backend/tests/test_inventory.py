import pytest

from retailops.models.product import Product
from retailops.services.checkout_service import CheckoutService
from retailops.services.errors import InvalidQuantity, NotFound, PermissionDenied
from retailops.services.inventory_service import InventoryService
from retailops.services.permissions import Role


def test_stock_in_appends_movement(db, make_product):
    p = make_product(sku="SKU-1", initial_qty=5)
    svc = InventoryService(db)

    assert svc.stock_in(p.id, 3, reason=" supplier delivery ") == 8

    moves = svc.list_movements(p.id)
    assert [(m.movement_type, m.qty) for m in moves] == [("IN", 5), ("IN", 3)]
    assert moves[1].reason == "supplier delivery"
    assert svc.reconcile(p.id) == (8, 8)


@pytest.mark.parametrize("qty", [0, -1])
def test_stock_in_rejects_non_positive(db, make_product, qty):
    p = make_product(initial_qty=5)
    svc = InventoryService(db)
    with pytest.raises(InvalidQuantity):
        svc.stock_in(p.id, qty)
    assert len(svc.list_movements(p.id)) == 1
    assert svc.reconcile(p.id) == (5, 5)


def test_stock_in_unknown_product(db):
    with pytest.raises(NotFound):
        InventoryService(db).stock_in("missing", 1)


def test_cashier_cannot_receive_stock(db, make_product):
    p = make_product()
    with pytest.raises(PermissionDenied):
        InventoryService(db, role=Role.CASHIER).stock_in(p.id, 1)


def test_ledger_reconciles_after_sales(db, make_product):
    p = make_product(sku="SKU-1", price="10.00", initial_qty=5)
    inv = InventoryService(db)
    inv.stock_in(p.id, 10)
    CheckoutService(db).checkout([{"product_id": p.id, "qty": 4}], "CASH", "40.00")
    CheckoutService(db).checkout([{"product_id": p.id, "qty": 2}], "CARD", "20.00")

    qty, ledger = inv.reconcile(p.id)
    assert qty == ledger == 9
    moves = inv.list_movements(p.id)
    assert [m.movement_type for m in moves] == ["IN", "IN", "OUT", "OUT"]
    assert moves[2].reason.startswith("Checkout SO")


def test_list_movements_unknown_product(db):
    with pytest.raises(NotFound):
        InventoryService(db).list_movements("missing")


def test_stock_in_joins_a_transaction_the_caller_left_open(db, make_product):
    p = make_product(sku="SKU-1", initial_qty=5)
    assert db.query(Product).count() == 1
    db.add(Product(sku="PENDING", name="Pending", price=1, cost=0))

    InventoryService(db).stock_in(p.id, 2)
    # the caller's work was not committed on its behalf, so it can still back out
    db.rollback()

    assert db.query(Product).filter(Product.sku == "PENDING").first() is None
    assert InventoryService(db).reconcile(p.id) == (5, 5)
