from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from storefront.api.deps import get_notifier
from storefront.db import SessionLocal, init_db
from storefront.main import app
from storefront.models.order import Order, OrderItem
from storefront.repositories.inventory_repo import InventoryRepository
from storefront.services.inventory_service import InventoryService
from storefront.services.order_service import OrderService
from factories import (
    admin_headers,
    make_admin,
    make_product,
    make_user,
    set_price,
    stock_of,
    user_headers,
)

client = TestClient(app)

ADMIN_EMAIL = "owner@example.com"


def setup_module(module):
    init_db(reset=True)
    # first rows of both tables: admin_id 1 and user id 1
    module.ADMIN_ID = make_admin(ADMIN_EMAIL)
    module.USER_ID = make_user("buyer@example.com")
    module.OTHER_ID = make_user("stranger@example.com")


def _admin():
    return admin_headers(ADMIN_ID, ADMIN_EMAIL)


def _add(headers, product_id, quantity, notes=None):
    res = client.post(
        "/api/cart/items",
        json={"product_id": product_id, "quantity": quantity, "custom_notes": notes},
        headers=headers,
    )
    assert res.status_code == 200, res.text
    return res.json()


def _checkout(headers, address="12 Long St, Cape Town", method="eft"):
    return client.post(
        "/api/orders",
        json={"shipping_address": address, "payment_method": method},
        headers=headers,
    )


def _place(headers, product_id, quantity=1):
    _add(headers, product_id, quantity)
    res = _checkout(headers)
    assert res.status_code == 201, res.text
    return res.json()


def test_checkout_snapshots_prices_and_decrements_stock():
    chair = make_product("Armchair", 10000, stock=5)
    table = make_product("Side table", 5000, stock=5)
    headers = user_headers(USER_ID)
    _add(headers, chair, 2, "green velvet")
    _add(headers, table, 1)

    res = _checkout(headers)
    assert res.status_code == 201
    order = res.json()
    assert order["total_cents"] == 25000
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["owner_kind"] == "user"
    assert order["owner_id"] == USER_ID
    lines = {oi["product_id"]: oi for oi in order["items"]}
    assert lines[chair]["quantity"] == 2
    assert lines[chair]["unit_price_cents"] == 10000
    assert lines[table]["unit_price_cents"] == 5000

    assert stock_of(chair) == 3
    assert stock_of(table) == 4
    assert client.get("/api/cart", headers=headers).json()["items"] == []

    sent = [m for m in get_notifier().sent if f"#UCR-{order['id']}" in m["body"]]
    assert len(sent) == 1
    assert sent[0]["to"] == "buyer@example.com"
    assert "R 250.00" in sent[0]["body"]


def test_empty_cart_is_rejected():
    res = _checkout(user_headers(OTHER_ID))
    assert res.status_code == 400


def test_invalid_order_requests():
    pid = make_product("Cushion", 3000, stock=5)
    headers = user_headers(OTHER_ID)
    item = _add(headers, pid, 1)
    assert _checkout(headers, method="bitcoin").status_code == 400
    assert _checkout(headers, address="   ").status_code == 400
    # nothing was consumed by the rejected attempts
    assert stock_of(pid) == 5
    assert len(client.get("/api/cart", headers=headers).json()["items"]) == 1
    client.delete(f"/api/cart/items/{item['id']}", headers=headers)


def test_insufficient_stock_leaves_everything_untouched():
    plenty = make_product("Bookshelf", 20000, stock=10)
    scarce = make_product("Mirror", 8000, stock=1)
    headers = user_headers(OTHER_ID)
    _add(headers, plenty, 2)
    _add(headers, scarce, 3)
    orders_before = client.get("/api/orders", headers=headers).json()

    res = _checkout(headers)
    assert res.status_code == 409
    assert str(scarce) in res.json()["detail"]

    assert stock_of(plenty) == 10
    assert stock_of(scarce) == 1
    assert client.get("/api/orders", headers=headers).json() == orders_before
    assert len(client.get("/api/cart", headers=headers).json()["items"]) == 2

    # client can fix the cart and retry
    cart = client.get("/api/cart", headers=headers).json()
    line = next(row for row in cart["items"] if row["product_id"] == scarce)
    client.put(f"/api/cart/items/{line['id']}", json={"quantity": 1}, headers=headers)
    assert _checkout(headers).status_code == 201
    assert stock_of(scarce) == 0
    assert stock_of(plenty) == 8


def test_order_lines_ignore_later_price_changes():
    pid = make_product("Ottoman", 7000, stock=3)
    headers = user_headers(USER_ID)
    order = _place(headers, pid, 2)

    set_price(pid, 9900)

    res = client.get(f"/api/orders/{order['id']}", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["total_cents"] == 14000
    assert body["items"][0]["unit_price_cents"] == 7000


def test_last_unit_goes_to_one_buyer():
    pid = make_product("One-off lamp", 40000, stock=1)
    first, second = user_headers(USER_ID), user_headers(OTHER_ID)
    _add(first, pid, 1)
    _add(second, pid, 1)

    assert _checkout(first).status_code == 201
    assert _checkout(second).status_code == 409
    assert stock_of(pid) == 0


def test_order_visibility():
    pid = make_product("Print", 1500, stock=5)
    order = _place(user_headers(USER_ID), pid)

    assert client.get(f"/api/orders/{order['id']}", headers=user_headers(OTHER_ID)).status_code == 403
    assert client.get(f"/api/orders/{order['id']}", headers=_admin()).status_code == 200
    assert client.get("/api/orders/999999", headers=user_headers(USER_ID)).status_code == 404

    mine = client.get("/api/orders", headers=user_headers(USER_ID)).json()
    assert order["id"] in [o["id"] for o in mine]
    theirs = client.get("/api/orders", headers=user_headers(OTHER_ID)).json()
    assert order["id"] not in [o["id"] for o in theirs]


def test_admin_and_user_with_same_numeric_id_do_not_share():
    assert ADMIN_ID == USER_ID
    pid = make_product("Tray", 2500, stock=5)
    admin_order = _place(_admin(), pid)
    assert admin_order["owner_kind"] == "admin"

    res = client.get(f"/api/orders/{admin_order['id']}", headers=user_headers(USER_ID))
    assert res.status_code == 403
    mine = client.get("/api/orders", headers=user_headers(USER_ID)).json()
    assert admin_order["id"] not in [o["id"] for o in mine]


def test_status_walks_the_chain():
    pid = make_product("Desk", 60000, stock=5)
    order = _place(user_headers(USER_ID), pid)
    url = f"/api/admin/orders/{order['id']}/status"

    res = client.put(url, json={"status": "ready"}, headers=_admin())
    assert res.status_code == 400

    nxt = client.get(f"/api/admin/orders/{order['id']}/next-statuses", headers=_admin()).json()
    assert nxt["status"] == "pending"
    assert nxt["next_statuses"] == ["cancelled", "confirmed"]
    assert nxt["progress"] == 0

    for status in ("confirmed", "in_production", "ready", "delivered"):
        res = client.put(url, json={"status": status}, headers=_admin())
        assert res.status_code == 200, res.text
        assert res.json()["status"] == status

    res = client.put(url, json={"status": "cancelled"}, headers=_admin())
    assert res.status_code == 400
    nxt = client.get(f"/api/admin/orders/{order['id']}/next-statuses", headers=_admin()).json()
    assert nxt["next_statuses"] == []
    assert nxt["progress"] == 4


def test_cancel_restocks():
    pid = make_product("Bench", 35000, stock=4)
    order = _place(user_headers(USER_ID), pid, 3)
    assert stock_of(pid) == 1

    url = f"/api/admin/orders/{order['id']}/status"
    assert client.put(url, json={"status": "confirmed"}, headers=_admin()).status_code == 200
    res = client.put(url, json={"status": "cancelled"}, headers=_admin())
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
    assert stock_of(pid) == 4

    # cancelled is terminal
    assert client.put(url, json={"status": "confirmed"}, headers=_admin()).status_code == 400
    assert stock_of(pid) == 4


def test_status_changes_need_admin():
    pid = make_product("Stool", 4000, stock=5)
    order = _place(user_headers(USER_ID), pid)
    res = client.put(
        f"/api/admin/orders/{order['id']}/status",
        json={"status": "confirmed"},
        headers=user_headers(USER_ID),
    )
    assert res.status_code == 403
    res = client.put("/api/admin/orders/999999/status", json={"status": "confirmed"}, headers=_admin())
    assert res.status_code == 404


def test_payment_status():
    pid = make_product("Coat rack", 9000, stock=5)
    order = _place(user_headers(USER_ID), pid)
    url = f"/api/admin/orders/{order['id']}/payment-status"

    assert client.put(url, json={"payment_status": "refunded"}, headers=_admin()).status_code == 400
    res = client.put(url, json={"payment_status": "paid"}, headers=_admin())
    assert res.status_code == 200
    assert res.json()["payment_status"] == "paid"
    res = client.put(url, json={"payment_status": "refunded"}, headers=_admin())
    assert res.json()["payment_status"] == "refunded"


def test_dashboard_excludes_cancelled_revenue():
    before = client.get("/api/admin/dashboard", headers=_admin()).json()
    pid = make_product("Screen", 100000, stock=2)
    order = _place(user_headers(OTHER_ID), pid)

    mid = client.get("/api/admin/dashboard", headers=_admin()).json()
    assert mid["total_orders"] == before["total_orders"] + 1
    assert mid["total_revenue_cents"] == before["total_revenue_cents"] + 100000

    client.put(
        f"/api/admin/orders/{order['id']}/status", json={"status": "cancelled"}, headers=_admin()
    )
    after = client.get("/api/admin/dashboard", headers=_admin()).json()
    assert after["total_revenue_cents"] == before["total_revenue_cents"]
    assert after["total_customers"] >= 2
    assert "total_products" in after

    listing = client.get("/api/admin/orders", headers=_admin()).json()
    assert listing[0]["id"] == order["id"]


class _BrokenNotifier:
    def send_order_confirmation(self, to, order_id, total_cents):
        raise RuntimeError("mail server down")

    def health_check(self):
        return False


def test_notification_failure_does_not_undo_order():
    pid = make_product("Planter", 6000, stock=3)
    headers = user_headers(OTHER_ID)
    _add(headers, pid, 1)
    app.dependency_overrides[get_notifier] = _BrokenNotifier
    try:
        res = _checkout(headers)
    finally:
        app.dependency_overrides.pop(get_notifier, None)
    assert res.status_code == 201
    assert stock_of(pid) == 2
    assert client.get(f"/api/orders/{res.json()['id']}", headers=headers).status_code == 200


def test_concurrent_buyers_cannot_oversell():
    pid = make_product("Limited stool", 2500, stock=3)
    buyers = [make_user(f"rush{i}@example.com") for i in range(10)]
    for uid in buyers:
        _add(user_headers(uid), pid, 1)

    def buy(uid):
        # one client per thread, as separate browsers would be
        own = TestClient(app)
        res = own.post(
            "/api/orders",
            json={"shipping_address": "1 Rush Rd", "payment_method": "card"},
            headers=user_headers(uid),
        )
        return res.status_code

    with ThreadPoolExecutor(max_workers=len(buyers)) as pool:
        codes = list(pool.map(buy, buyers))

    assert codes.count(201) == 3
    assert codes.count(409) == len(buyers) - 3
    assert stock_of(pid) == 0


def _order_rows():
    db = SessionLocal()
    try:
        return db.query(Order).count(), db.query(OrderItem).count()
    finally:
        db.close()


def test_failed_decrement_mid_checkout_rolls_back_whole_order(monkeypatch):
    first = make_product("Bench", 4000, stock=5)
    second = make_product("Cushion", 900, stock=5)
    uid = make_user("midway@example.com")
    headers = user_headers(uid)
    _add(headers, first, 2)
    _add(headers, second, 1)
    before = _order_rows()

    real_decrement = InventoryRepository.decrement

    def decrement(self, product_id, quantity):
        # stock taken by someone else between the check and the write
        if product_id == second:
            return False
        return real_decrement(self, product_id, quantity)

    monkeypatch.setattr(InventoryRepository, "decrement", decrement)
    res = _checkout(headers)

    assert res.status_code == 409
    assert _order_rows() == before
    assert stock_of(first) == 5
    assert stock_of(second) == 5
    assert client.get("/api/orders", headers=headers).json() == []
    lines = client.get("/api/cart", headers=headers).json()["items"]
    assert sorted(line["product_id"] for line in lines) == sorted([first, second])


def test_unexpected_error_reading_order_is_500(monkeypatch):
    order = _place(user_headers(USER_ID), make_product("Lamp", 3000, stock=2))

    def broken(self, order_id, principal):
        raise RuntimeError("db went away")

    monkeypatch.setattr(OrderService, "get_order", broken)
    res = client.get(f"/api/orders/{order['id']}", headers=user_headers(USER_ID))
    assert res.status_code == 500
    assert res.json()["detail"] == "Internal error reading order"


def test_unexpected_error_adjusting_stock_is_500(monkeypatch):
    pid = make_product("Rug", 7000, stock=2)

    def broken(self, product_id, delta):
        raise RuntimeError("db went away")

    monkeypatch.setattr(InventoryService, "adjust", broken)
    res = client.post(f"/api/admin/inventory/{pid}/adjust", json={"delta": 1}, headers=_admin())
    assert res.status_code == 500
    assert res.json()["detail"] == "Internal error adjusting stock"
    assert stock_of(pid) == 2
