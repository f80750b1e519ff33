import os
import sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import requests
import concurrent.futures
import argparse
from collections import Counter

BASE = os.environ.get("RETAILOPS_BASE", "http://127.0.0.1:8000")


def find_product(sku):
    r = requests.get(f"{BASE}/api/products", params={"keyword": sku}, timeout=10)
    r.raise_for_status()
    for p in r.json()["items"]:
        if p["sku"] == sku:
            return p
    raise SystemExit(f"SKU not found: {sku}")


def checkout_task(i, product_id, qty, paid):
    payload = {
        "items": [{"productId": product_id, "qty": qty}],
        "paymentMethod": "CASH",
        "paidAmount": paid,
        "note": f"concurrency worker {i}",
    }
    try:
        r = requests.post(f"{BASE}/api/checkout", json=payload, headers={"X-Role": "cashier"}, timeout=30)
        body = r.json()
        return (i, r.status_code, body.get("orderNo") or body.get("code"))
    except (requests.RequestException, ValueError) as e:
        return (i, "ERR", str(e))


def run(workers, sku, qty):
    product = find_product(sku)
    start_qty = product["qtyOnHand"]
    paid = str(float(product["price"]) * qty + 1)
    print(f"Running checkout test: workers={workers}, sku={sku}, qty={qty}, on_hand={start_qty}")

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(checkout_task, i, product["id"], qty, paid) for i in range(workers)]
        results = [f.result() for f in futures]

    for r in results:
        print(r)
    statuses = Counter(r[1] for r in results)
    print("Status counts:", dict(statuses))

    end_qty = find_product(sku)["qtyOnHand"]
    sold = statuses.get(200, 0) * qty
    print(f"on_hand before={start_qty} after={end_qty} sold={sold}")
    if start_qty - sold != end_qty or end_qty < 0:
        print("MISMATCH: stock does not add up")
        sys.exit(2)
    print("OK: no oversell")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fire concurrent checkouts at one SKU and check for oversell.")
    parser.add_argument("--sku", default="SKU-MUG-001")
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--workers", type=int, default=12)
    args = parser.parse_args()
    run(args.workers, args.sku, args.qty)
