from decimal import Decimal

import pytest

from conftest import SHIPPING, OTHER_EMAIL, create_code, create_user, get_code, login

CART = [
    {"product_id": "case-1", "name": "Phone Case", "price": "20.00", "quantity": 2, "color": "black"},
    {"product_id": "cable-1", "name": "USB-C Cable", "price": "9.99", "quantity": 1},
]


def order_payload(**overrides):
    payload = {"items": CART, "shipping_address": SHIPPING}
    payload.update(overrides)
    return payload


async def place(client, headers, **overrides):
    resp = await client.post("/orders/", json=order_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# -----------------------
# quote
# -----------------------
async def test_quote_without_code(client):
    resp = await client.post("/cart/quote", json={"items": CART})
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["subtotal"]) == Decimal("49.99")
    assert Decimal(body["discount"]) == 0
    assert Decimal(body["delivery_fee"]) == Decimal("5.00")
    assert Decimal(body["total"]) == Decimal("54.99")


async def test_quote_with_code(client):
    await create_code("SAVE20", 20)
    resp = await client.post("/cart/quote", json={"items": CART, "discount_code": "save20"})
    body = resp.json()
    assert Decimal(body["discount"]) == Decimal("10.00")
    assert Decimal(body["total"]) == Decimal("44.99")
    assert body["discount_code"] == "SAVE20"
    assert body["percentage"] == 20


async def test_quote_merges_duplicate_lines(client):
    items = [CART[0], {**CART[0], "quantity": 1}]
    body = (await client.post("/cart/quote", json={"items": items})).json()
    assert Decimal(body["subtotal"]) == Decimal("60.00")


async def test_quote_with_invalid_code_is_rejected(client, past):
    await create_code("OLD", 20, expires_at=past)
    resp = await client.post("/cart/quote", json={"items": CART, "discount_code": "OLD"})
    assert resp.status_code == 400


async def test_quote_rejects_zero_quantity(client):
    resp = await client.post("/cart/quote", json={"items": [{**CART[0], "quantity": 0}]})
    assert resp.status_code == 422


# -----------------------
# checkout
# -----------------------
async def test_place_order_snapshots_prices_and_counts_code_use(client, shopper_headers):
    await create_code("SAVE20", 20, max_uses=5)
    order = await place(client, shopper_headers, discount_code="save20")

    assert order["status"] == "PENDING"
    assert Decimal(order["subtotal"]) == Decimal("49.99")
    assert Decimal(order["discount"]) == Decimal("10.00")
    assert Decimal(order["delivery_fee"]) == Decimal("5.00")
    assert Decimal(order["total"]) == Decimal("44.99")
    assert order["discount_code"] == "SAVE20"
    assert len(order["items"]) == 2
    assert order["tracking_number"].startswith("SF-")
    assert (await get_code("SAVE20")).current_uses == 1


async def test_place_order_without_code(client, shopper_headers):
    order = await place(client, shopper_headers)
    assert Decimal(order["total"]) == Decimal(order["subtotal"]) + Decimal(order["delivery_fee"])
    assert order["discount_code"] is None


async def test_usage_cap_stops_checkout(client, shopper_headers):
    await create_code("LAST", 50, max_uses=1)
    await place(client, shopper_headers, discount_code="LAST")

    resp = await client.post("/orders/", json=order_payload(discount_code="LAST"), headers=shopper_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired discount code"
    assert (await get_code("LAST")).current_uses == 1

    mine = (await client.get("/orders/", headers=shopper_headers)).json()
    assert len(mine) == 1


async def test_checkout_requires_login(client):
    resp = await client.post("/orders/", json=order_payload())
    assert resp.status_code == 401


async def test_empty_cart_cannot_be_ordered(client, shopper_headers):
    resp = await client.post("/orders/", json=order_payload(items=[]), headers=shopper_headers)
    assert resp.status_code == 422


async def test_shoppers_only_see_their_own_orders(client, shopper_headers):
    order = await place(client, shopper_headers)

    await create_user(OTHER_EMAIL)
    tokens = await login(client, OTHER_EMAIL)
    other = {"Authorization": f"Bearer {tokens['access_token']}"}

    assert (await client.get("/orders/", headers=other)).json() == []
    assert (await client.get(f"/orders/{order['id']}", headers=other)).status_code == 404
    assert (await client.get(f"/orders/{order['id']}", headers=shopper_headers)).status_code == 200


async def test_tracking_lookup(client, shopper_headers):
    order = await place(client, shopper_headers)
    resp = await client.get("/orders/track", params={"tracking_number": order["tracking_number"]}, headers=shopper_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == order["id"]
    assert body["status_history"][0]["status"] == "PENDING"
    assert "shipping_address" not in body
    assert "created_by" not in body["status_history"][0]

    missing = await client.get("/orders/track", params={"tracking_number": "nope"}, headers=shopper_headers)
    assert missing.status_code == 404


async def test_tracking_requires_login(client, shopper_headers):
    order = await place(client, shopper_headers)
    resp = await client.get("/orders/track", params={"tracking_number": order["tracking_number"]})
    assert resp.status_code == 401


async def test_tracking_hides_other_shoppers_orders(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)
    await move(client, admin_headers, order["id"], "CANCELLED", notes="Flagged by support")

    await create_user(OTHER_EMAIL)
    tokens = await login(client, OTHER_EMAIL)
    other = {"Authorization": f"Bearer {tokens['access_token']}"}

    resp = await client.get("/orders/track", params={"tracking_number": order["tracking_number"]}, headers=other)
    assert resp.status_code == 404
    assert "Flagged" not in resp.text


# -----------------------
# admin status transitions
# -----------------------
async def move(client, headers, order_id, status, **extra):
    return await client.post(f"/admin/orders/{order_id}/status", json={"status": status, **extra}, headers=headers)


async def test_linear_fulfilment(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)

    for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
        resp = await move(client, admin_headers, order["id"], status, tracking_number=None)
        assert resp.status_code == 200, resp.text
        assert resp.json()["order"]["status"] == status

    final = resp.json()["order"]
    assert final["actual_delivery"] is not None
    assert [h["status"] for h in final["status_history"]] == ["PENDING", "PROCESSING", "SHIPPED", "DELIVERED"]


@pytest.mark.parametrize("target", ["SHIPPED", "DELIVERED", "PENDING"])
async def test_steps_cannot_be_skipped(client, shopper_headers, admin_headers, target):
    order = await place(client, shopper_headers)
    resp = await move(client, admin_headers, order["id"], target)
    assert resp.status_code == 409


async def test_cancel_records_reason_and_is_final(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)
    await move(client, admin_headers, order["id"], "PROCESSING")

    resp = await move(client, admin_headers, order["id"], "CANCELLED", notes="Out of stock")
    cancelled = resp.json()["order"]
    assert cancelled["status"] == "CANCELLED"
    assert cancelled["cancel_reason"] == "Out of stock"
    assert cancelled["cancelled_at"] is not None

    assert (await move(client, admin_headers, order["id"], "SHIPPED")).status_code == 409
    assert (await move(client, admin_headers, order["id"], "CANCELLED")).status_code == 409


async def test_notes_stay_editable_after_delivery(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)
    for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
        await move(client, admin_headers, order["id"], status)

    resp = await client.patch(
        f"/admin/orders/{order['id']}/notes", json={"admin_notes": "Left at door"}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["admin_notes"] == "Left at door"
    assert resp.json()["status"] == "DELIVERED"


async def test_shipping_details_and_history(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)
    await move(client, admin_headers, order["id"], "PROCESSING", notes="Packed")
    await move(
        client, admin_headers, order["id"], "SHIPPED",
        tracking_number="TRK-1", courier_service="DHL", estimated_delivery="2030-01-01T00:00:00Z",
    )

    detail = (await client.get(f"/admin/orders/{order['id']}", headers=admin_headers)).json()
    assert detail["tracking_number"] == "TRK-1"
    assert detail["courier_service"] == "DHL"

    history = (await client.get(f"/admin/orders/{order['id']}/history", headers=admin_headers)).json()
    assert [h["status"] for h in history] == ["SHIPPED", "PROCESSING", "PENDING"]
    assert history[1]["notes"] == "Packed"


async def test_admin_lists_orders_by_status(client, shopper_headers, admin_headers):
    first = await place(client, shopper_headers)
    await place(client, shopper_headers)
    await move(client, admin_headers, first["id"], "PROCESSING")

    processing = (await client.get("/admin/orders/", params={"status": "PROCESSING"}, headers=admin_headers)).json()
    assert [o["id"] for o in processing] == [first["id"]]
    everything = (await client.get("/admin/orders/", headers=admin_headers)).json()
    assert len(everything) == 2


async def test_shopper_cannot_change_status(client, shopper_headers):
    order = await place(client, shopper_headers)
    assert (await move(client, shopper_headers, order["id"], "PROCESSING")).status_code == 403


async def test_unknown_order(client, admin_headers):
    assert (await move(client, admin_headers, 999, "PROCESSING")).status_code == 404


async def test_tracking_number_cannot_be_reused(client, shopper_headers, admin_headers):
    first = await place(client, shopper_headers)
    second = await place(client, shopper_headers)

    assert (await move(client, admin_headers, first["id"], "PROCESSING", tracking_number="DHL-1")).status_code == 200
    resp = await move(client, admin_headers, second["id"], "PROCESSING", tracking_number="DHL-1")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Tracking number already in use"

    detail = (await client.get(f"/admin/orders/{second['id']}", headers=admin_headers)).json()
    assert detail["status"] == "PENDING"
    assert detail["tracking_number"] == second["tracking_number"]


async def test_same_order_can_keep_its_tracking_number(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)
    await move(client, admin_headers, order["id"], "PROCESSING", tracking_number="UPS-7")
    resp = await move(client, admin_headers, order["id"], "SHIPPED", tracking_number="UPS-7")
    assert resp.status_code == 200


async def test_admin_deletes_order(client, shopper_headers, admin_headers):
    order = await place(client, shopper_headers)
    resp = await client.delete(f"/admin/orders/{order['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert (await client.get(f"/admin/orders/{order['id']}", headers=admin_headers)).status_code == 404
    assert (await client.get("/orders/", headers=shopper_headers)).json() == []
    assert (await client.delete(f"/admin/orders/{order['id']}", headers=admin_headers)).status_code == 404


async def test_shopper_cannot_delete_orders(client, shopper_headers):
    order = await place(client, shopper_headers)
    assert (await client.delete(f"/admin/orders/{order['id']}", headers=shopper_headers)).status_code == 403
