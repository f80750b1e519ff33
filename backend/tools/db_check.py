import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "retailops.db"
SKU = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Recent Orders ===")
cur.execute(
    "SELECT order_no, payment_method, subtotal, discount, total, paid_amount, change_amount, created_at "
    "FROM sales_orders ORDER BY created_at DESC LIMIT 20"
)
for r in cur.fetchall():
    print(r)

# quantity on hand must equal the signed sum of the movement log
print("\n=== Ledger Reconciliation ===")
query = (
    "SELECT p.sku, l.quantity, "
    "COALESCE(SUM(CASE m.movement_type WHEN 'IN' THEN m.qty ELSE -m.qty END), 0) AS ledger "
    "FROM products p "
    "JOIN inventory_levels l ON l.product_id = p.id "
    "LEFT JOIN inventory_movements m ON m.product_id = p.id "
)
params = ()
if SKU:
    query += "WHERE p.sku = ? "
    params = (SKU,)
query += "GROUP BY p.id, p.sku, l.quantity ORDER BY p.sku"
cur.execute(query, params)
bad = 0
for sku, qty, ledger in cur.fetchall():
    flag = "ok" if qty == ledger else "MISMATCH"
    if qty != ledger:
        bad += 1
    print(f"{sku}: on_hand={qty} ledger={ledger} {flag}")

if SKU:
    print(f"\n=== Movements for SKU={SKU} ===")
    cur.execute(
        "SELECT m.movement_type, m.qty, m.reason, m.created_at FROM inventory_movements m "
        "JOIN products p ON p.id = m.product_id WHERE p.sku=? ORDER BY m.created_at DESC LIMIT 50",
        (SKU,),
    )
    for r in cur.fetchall():
        print(r)

conn.close()
sys.exit(1 if bad else 0)
