import os
import tempfile

# settings are read at import time, so point them at a throwaway database first
_DB_DIR = tempfile.mkdtemp(prefix="retailops_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RESET_DB"] = "false"
os.environ["LOW_STOCK_SCAN_SECONDS"] = "0"
os.environ["DEFAULT_ROLE"] = "admin"

import pytest
from fastapi.testclient import TestClient

from retailops.db import SessionLocal, init_db
from retailops.main import app
from retailops.services.catalog_service import CatalogService


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_product(db):
    """Create a product through the catalog service; returns the Product."""

    def _make(sku="SKU-1", name=None, price="100.00", initial_qty=5, **kw):
        return CatalogService(db).create_product(
            sku=sku, name=name or f"Product {sku}", price=price, initial_qty=initial_qty, **kw
        )

    return _make
