#!/usr/bin/env python3
"""
Seed products from a JSON file into the configured database.

Accepts a list of product entries, or an object with an "items" list. Entries
use the API's field names (sku, name, category, price, cost, initialQty,
reorderLevel, barcodes); snake_case keys are accepted too. SKUs that already
exist are skipped, so the script can be re-run safely.

Usage:
    python scripts/seed_products.py --file products.json
    python scripts/seed_products.py --demo
"""
import argparse
import json
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from retailops.db import SessionLocal, init_db
from retailops.db.seed import DEMO_PRODUCTS
from retailops.services.catalog_service import CatalogService
from retailops.services.errors import DuplicateSku, RetailOpsError


def _pick(entry, *keys, default=None):
    for k in keys:
        if entry.get(k) is not None:
            return entry[k]
    return default


def _normalize_entry(entry):
    """Return a dict of CatalogService.create_product kwargs plus the barcode list."""
    return {
        "sku": _pick(entry, "sku"),
        "name": _pick(entry, "name", "title", default=""),
        "category": _pick(entry, "category"),
        "price": _pick(entry, "price", default=0),
        "cost": _pick(entry, "cost", default=0),
        "initial_qty": int(_pick(entry, "initialQty", "initial_qty", "stock", default=0)),
        "reorder_level": _pick(entry, "reorderLevel", "reorder_level"),
        "barcodes": _pick(entry, "barcodes", default=[]),
    }


def load_entries(path: str):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise RuntimeError(f"Expected a list of products in {path}")
    return [_normalize_entry(e) for e in data]


def seed(entries):
    db = SessionLocal()
    svc = CatalogService(db)
    created, skipped, failed = 0, 0, 0
    try:
        for entry in entries:
            barcodes = entry.pop("barcodes", None) or []
            try:
                p = svc.create_product(**entry)
            except DuplicateSku:
                skipped += 1
                continue
            except RetailOpsError as e:
                print(f"Skipping {entry.get('sku')}: {e.code} {e.message}")
                failed += 1
                continue
            for b in barcodes:
                svc.add_barcode(
                    p.id,
                    b.get("format", "EAN_13"),
                    _pick(b, "codeValue", "code_value"),
                    bool(_pick(b, "isPrimary", "is_primary", default=False)),
                )
            created += 1
    finally:
        db.close()
    print(f"Seeded products: created={created} skipped={skipped} failed={failed}")
    return created


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", help="Path to a JSON list of product entries")
    parser.add_argument("--demo", action="store_true", help="Seed the built-in demo catalogue")
    args = parser.parse_args()

    init_db()
    if args.demo:
        seed([dict(e) for e in DEMO_PRODUCTS])
    elif args.file:
        if not os.path.exists(args.file):
            print("File not found:", args.file)
            sys.exit(1)
        seed(load_entries(args.file))
    else:
        parser.print_help()
        sys.exit(1)
