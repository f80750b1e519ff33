from sqlalchemy.orm import Session

from retailops.repositories.product_repo import ProductRepository
from retailops.services.catalog_service import CatalogService

DEMO_PRODUCTS = [
    {"sku": "SKU-COFFEE-001", "name": "House Blend Coffee 250g", "category": "Beverage", "price": "189.00", "cost": "110.00", "initial_qty": 40, "reorder_level": 10},
    {"sku": "SKU-TEA-001",    "name": "Oolong Tea 100g",         "category": "Beverage", "price": "149.00", "cost": "80.00",  "initial_qty": 25, "reorder_level": 8},
    {"sku": "SKU-SNACK-001",  "name": "Sea Salt Crackers",       "category": "Snack",    "price": "45.00",  "cost": "22.00",  "initial_qty": 60, "reorder_level": 15},
    {"sku": "SKU-MUG-001",    "name": "Ceramic Mug",             "category": "Homeware", "price": "320.00", "cost": "150.00", "initial_qty": 6,  "reorder_level": 5},
    {"sku": "SKU-BAG-001",    "name": "Canvas Tote Bag",         "category": "Homeware", "price": "250.00", "cost": "120.00", "initial_qty": 12, "reorder_level": 4},
]


def seed_demo_catalog(db: Session) -> int:
    """
    Create the demo catalogue on an empty database. Goes through CatalogService so
    every product gets its inventory level and initial-stock movement.
    Returns the number of products created (0 when the catalogue isn't empty).
    """
    existing = ProductRepository(db).count()
    # end the read so each create below commits on its own
    db.rollback()
    if existing:
        return 0
    svc = CatalogService(db)
    for ent in DEMO_PRODUCTS:
        svc.create_product(**ent)
    return len(DEMO_PRODUCTS)
