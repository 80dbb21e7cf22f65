"""
Fire concurrent checkouts for the last units of one product against a running
server and report how many won. Every worker is a separate customer whose cart
holds ``--qty`` units; with ``--stock`` units on hand at most stock // qty
checkouts may succeed and the rest must get 409.

Needs a seeded server and tokens, e.g.:
    python tools/concurrency_checkout.py --admin-token $ADMIN --product 5 --stock 1 \
        --user-token $U1 --user-token $U2 --user-token $U3
"""
import argparse
import concurrent.futures
import os

import requests

BASE = os.environ.get("STOREFRONT_BASE", "http://127.0.0.1:8000")


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def set_stock(admin_token, product_id, stock):
    rows = requests.get(f"{BASE}/api/admin/inventory", headers=_auth(admin_token), timeout=10)
    rows.raise_for_status()
    current = next((r["quantity"] for r in rows.json() if r["product_id"] == product_id), 0)
    r = requests.post(
        f"{BASE}/api/admin/inventory/{product_id}/adjust",
        json={"delta": stock - current},
        headers=_auth(admin_token),
        timeout=10,
    )
    r.raise_for_status()
    return r.json()["quantity"]


def fill_cart(token, product_id, qty):
    r = requests.post(
        f"{BASE}/api/cart/items",
        json={"product_id": product_id, "quantity": qty},
        headers=_auth(token),
        timeout=10,
    )
    r.raise_for_status()


def checkout_task(i, token):
    payload = {"shipping_address": f"{i} Test Street", "payment_method": "cash"}
    try:
        r = requests.post(f"{BASE}/api/orders", json=payload, headers=_auth(token), timeout=20)
        return (i, r.status_code, r.text)
    except requests.RequestException as e:
        return (i, "ERR", str(e))


def run(admin_token, user_tokens, product_id, stock, qty):
    print(f"Setting stock of product {product_id} to {set_stock(admin_token, product_id, stock)}")
    for token in user_tokens:
        fill_cart(token, product_id, qty)

    print(f"Running checkout race: workers={len(user_tokens)}, qty={qty}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(user_tokens)) as ex:
        futures = [ex.submit(checkout_task, i, t) for i, t in enumerate(user_tokens)]
        results = [f.result() for f in futures]

    for r in results:
        print(r[:2])
    won = sum(1 for r in results if r[1] == 201)
    lost = sum(1 for r in results if r[1] == 409)
    rows = requests.get(f"{BASE}/api/admin/inventory", headers=_auth(admin_token), timeout=10).json()
    remaining = next((r["quantity"] for r in rows if r["product_id"] == product_id), 0)
    print(f"won={won} rejected={lost} other={len(results) - won - lost} remaining_stock={remaining}")
    if won > stock // qty or remaining < 0:
        print("OVERSOLD")
        return 1
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent checkout race for one product.")
    parser.add_argument("--admin-token", required=True)
    parser.add_argument("--user-token", action="append", required=True, dest="user_tokens")
    parser.add_argument("--product", type=int, required=True)
    parser.add_argument("--stock", type=int, default=1)
    parser.add_argument("--qty", type=int, default=1)
    args = parser.parse_args()
    raise SystemExit(run(args.admin_token, args.user_tokens, args.product, args.stock, args.qty))
