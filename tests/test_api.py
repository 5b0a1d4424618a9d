"""End-to-end tests through the HTTP API."""

from datetime import timedelta

from storefront.database.mongodb import CART_ITEMS, ORDERS
from storefront.exceptions import CatalogUnavailableError

from conftest import OTHER_USER_ID, USER_ID, auth_headers, make_token

API = "/api/v1"


async def test_health_reports_connected_database(client):
    response = await client.get(f"{API}/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"] == {"mongodb": "connected", "payment_gateway": "configured"}


async def test_responses_carry_request_id(client):
    response = await client.get(f"{API}/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers


async def test_order_without_session_is_unauthorized(client):
    response = await client.post(f"{API}/orders", json={"paymentMethod": "COD"})

    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"


async def test_order_with_forged_token_is_unauthorized(client):
    token = make_token(USER_ID, secret="not-the-secret")

    response = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "COD"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401


async def test_expired_session_is_unauthorized(client):
    token = make_token(USER_ID, expires_in=timedelta(minutes=-5))

    response = await client.get(f"{API}/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert "expired" in response.json()["error"]


async def test_empty_cart_checkout_is_rejected(client, seeded):
    response = await client.post(f"{API}/orders", json={"paymentMethod": "COD"}, headers=auth_headers())

    assert response.status_code == 400
    assert response.json()["error"] == "No items to order."
    assert await seeded[ORDERS].count_documents({}) == 0


async def test_buy_now_unknown_product_is_not_found(client, seeded):
    response = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "COD", "items": [{"productId": "ghost", "quantity": 1}]},
        headers=auth_headers(),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Product not found"
    assert await seeded[ORDERS].count_documents({}) == 0


async def test_buy_now_cod_order(client):
    response = await client.post(
        f"{API}/orders",
        json={
            "paymentMethod": "COD",
            "addressId": "addr-work",
            "items": [{"productId": "kurta", "quantity": 1}],
        },
        headers=auth_headers(),
    )

    assert response.status_code == 200
    order_id = response.json()["orderId"]

    order = (await client.get(f"{API}/orders/{order_id}", headers=auth_headers())).json()
    assert order["status"] == "processing"
    assert order["paymentMethod"] == "COD"
    assert order["shippingAddressId"] == "addr-work"
    assert order["subtotal"] == 450
    assert order["shippingFee"] == 40
    assert order["totalPrice"] == 490


async def test_cart_checkout_through_the_api(client, seeded):
    put = await client.put(f"{API}/cart/items/saree", json={"quantity": 1}, headers=auth_headers())
    assert put.status_code == 204

    cart = (await client.get(f"{API}/cart", headers=auth_headers())).json()
    assert [line["productId"] for line in cart["items"]] == ["saree"]
    assert cart["quote"]["shippingFee"] == 0
    assert cart["quote"]["total"] == 1000

    response = await client.post(f"{API}/orders", json={"paymentMethod": "COD"}, headers=auth_headers())

    assert response.status_code == 200
    order = (await client.get(f"{API}/orders/{response.json()['orderId']}", headers=auth_headers())).json()
    assert order["totalPrice"] == 1000
    assert order["status"] == "processing"
    assert await seeded[CART_ITEMS].count_documents({"userId": USER_ID}) == 0


async def test_quantity_above_cap_is_rejected(client, seeded):
    response = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "COD", "items": [{"productId": "scarf", "quantity": 1000}]},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert "quantity" in response.json()["error"]
    assert await seeded[ORDERS].count_documents({}) == 0


async def test_cart_rejects_quantity_above_cap(client):
    response = await client.put(f"{API}/cart/items/scarf", json={"quantity": 101}, headers=auth_headers())

    assert response.status_code == 400


async def test_removing_missing_cart_item_is_not_found(client):
    response = await client.delete(f"{API}/cart/items/kurta", headers=auth_headers())

    assert response.status_code == 404


async def test_online_payment_is_rejected_on_direct_submit(client, seeded):
    response = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "ONLINE", "items": [{"productId": "kurta", "quantity": 1}]},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert await seeded[ORDERS].count_documents({}) == 0


async def test_malformed_body_is_a_bad_request(client):
    response = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "CHEQUE"},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request."


async def test_idempotency_key_returns_first_order(client, seeded):
    headers = {**auth_headers(), "Idempotency-Key": "tab-1"}
    body = {"paymentMethod": "COD", "items": [{"productId": "kurta", "quantity": 1}]}

    first = await client.post(f"{API}/orders", json=body, headers=headers)
    second = await client.post(f"{API}/orders", json=body, headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["orderId"] == second.json()["orderId"]
    assert await seeded[ORDERS].count_documents({}) == 1


async def test_shipping_quote(client):
    response = await client.get(f"{API}/shipping/quote", params={"subtotal": 450})

    assert response.status_code == 200
    assert response.json() == {
        "subtotal": 450.0,
        "shippingFee": 40.0,
        "freeShippingThreshold": 500.0,
        "total": 490.0,
        "amountToFreeShipping": 50.0,
    }


async def test_orders_of_other_users_are_not_found(client):
    created = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "COD", "items": [{"productId": "kurta", "quantity": 1}]},
        headers=auth_headers(),
    )
    order_id = created.json()["orderId"]

    response = await client.get(f"{API}/orders/{order_id}", headers=auth_headers(OTHER_USER_ID))

    assert response.status_code == 404


async def test_list_and_cancel_orders(client):
    created = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "COD", "items": [{"productId": "kurta", "quantity": 1}]},
        headers=auth_headers(),
    )
    order_id = created.json()["orderId"]

    cancelled = await client.post(f"{API}/orders/{order_id}/cancel", headers=auth_headers())
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    listed = await client.get(f"{API}/orders", params={"status": "cancelled"}, headers=auth_headers())
    assert [o["orderId"] for o in listed.json()] == [order_id]

    again = await client.post(f"{API}/orders/{order_id}/cancel", headers=auth_headers())
    assert again.status_code == 400


async def test_online_checkout_end_to_end(client, gateway, seeded):
    await client.put(f"{API}/cart/items/kurta", json={"quantity": 1}, headers=auth_headers())

    intent = await client.post(f"{API}/payments/intent", json={"amount": 490}, headers=auth_headers())
    assert intent.status_code == 200
    intent_body = intent.json()
    assert intent_body["amount"] == 49000
    assert intent_body["keyId"] == "rzp_test_key"

    proof = gateway.proof(intent_body["intentId"], "pay_api_1").model_dump()
    body = {"total": 490, "payment": proof}

    first = await client.post(f"{API}/orders/finalize", json=body, headers=auth_headers())
    second = await client.post(f"{API}/orders/finalize", json=body, headers=auth_headers())

    assert first.status_code == second.status_code == 200
    assert first.json()["orderId"] == second.json()["orderId"]
    order = (await client.get(f"{API}/orders/{first.json()['orderId']}", headers=auth_headers())).json()
    assert order["status"] == "paid"
    assert order["paymentMethod"] == "Paid"
    assert await seeded[ORDERS].count_documents({}) == 1
    assert await seeded[CART_ITEMS].count_documents({"userId": USER_ID}) == 0


async def test_finalize_with_bad_signature(client, gateway, seeded):
    intent = (await client.post(f"{API}/payments/intent", json={"amount": 490}, headers=auth_headers())).json()
    proof = gateway.proof(intent["intentId"], "pay_api_2").model_dump()
    proof["signature"] = "f" * 64

    response = await client.post(
        f"{API}/orders/finalize",
        json={"total": 490, "items": [{"productId": "kurta", "quantity": 1}], "payment": proof},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Payment verification failed."
    assert await seeded[ORDERS].count_documents({}) == 0


async def test_payment_failure_callback(client, seeded):
    await client.put(f"{API}/cart/items/kurta", json={"quantity": 1}, headers=auth_headers())
    intent = (await client.post(f"{API}/payments/intent", json={"amount": 490}, headers=auth_headers())).json()

    response = await client.post(
        f"{API}/payments/failure",
        json={"gatewayOrderId": intent["intentId"], "reason": "user closed the widget"},
        headers=auth_headers(),
    )

    assert response.status_code == 204
    assert await seeded[CART_ITEMS].count_documents({"userId": USER_ID}) == 1


async def test_finalize_with_non_ascii_signature_is_rejected(client, gateway, seeded):
    intent = (await client.post(f"{API}/payments/intent", json={"amount": 490}, headers=auth_headers())).json()
    proof = gateway.proof(intent["intentId"], "pay_api_3").model_dump()
    proof["signature"] = "é" * 64

    response = await client.post(
        f"{API}/orders/finalize",
        json={"total": 490, "items": [{"productId": "kurta", "quantity": 1}], "payment": proof},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Payment verification failed."
    assert await seeded[ORDERS].count_documents({}) == 0


async def test_catalog_outage_is_a_server_error(client, monkeypatch):
    from storefront.services.catalog_service import CatalogService

    async def unavailable(product_id):
        raise CatalogUnavailableError(cause="no servers")

    monkeypatch.setattr(CatalogService, "get_product", staticmethod(unavailable))

    response = await client.post(
        f"{API}/orders",
        json={"paymentMethod": "COD", "items": [{"productId": "kurta", "quantity": 1}]},
        headers=auth_headers(),
    )

    assert response.status_code == 503
    assert response.json()["error"] == "Product catalog is unavailable."
