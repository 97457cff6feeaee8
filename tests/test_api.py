"""HTTP tests for the cart and order endpoints via httpx against the ASGI app."""

import pytest

ADDRESS = {"address": "1 Main St", "city": "Springfield", "postal_code": "12345", "country": "US"}


def _order_body(product_id, quantity=3, price=10.0, **extra):
    body = {
        "order_items": [
            {"product_id": product_id, "name": "Widget", "image": "w.png", "price": price, "quantity": quantity}
        ],
        "shipping_address": ADDRESS,
        "payment_method": "credit_card",
    }
    body.update(extra)
    return body


class TestEnvelope:
    async def test_missing_token(self, client):
        response = await client.get("/cart")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Not authorized to access this route",
            "data": None,
        }

    async def test_invalid_token(self, client):
        response = await client.get("/cart", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_schema_validation_error(self, client, auth, customer):
        response = await client.post("/cart", json={"quantity": 1}, headers=auth(customer))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "product_id" in body["message"]

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json()["status"] == "running"


class TestCartEndpoints:
    async def test_get_cart_creates_it(self, client, auth, customer):
        response = await client.get("/cart", headers=auth(customer))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Cart retrieved successfully"
        assert body["data"]["items"] == []
        assert body["data"]["total_items"] == 0

    async def test_add_item(self, client, auth, customer, make_product):
        pid = await make_product(stock=5, price=10.0)

        response = await client.post("/cart", json={"product_id": pid, "quantity": 2}, headers=auth(customer))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_items"] == 2
        assert data["total_amount"] == 20.0
        assert data["items"][0]["product"]["name"] == "Widget"

    async def test_add_over_stock(self, client, auth, customer, make_product):
        pid = await make_product(stock=5)
        await client.post("/cart", json={"product_id": pid, "quantity": 2}, headers=auth(customer))

        response = await client.post("/cart", json={"product_id": pid, "quantity": 10}, headers=auth(customer))

        assert response.status_code == 400
        assert response.json()["message"] == "Only 5 items available in stock"

    async def test_add_unknown_product(self, client, auth, customer):
        response = await client.post("/cart", json={"product_id": 999}, headers=auth(customer))

        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"

    async def test_update_remove_and_count(self, client, auth, customer, make_product):
        headers = auth(customer)
        a = await make_product(price=10.0)
        b = await make_product(price=1.0)
        await client.post("/cart", json={"product_id": a, "quantity": 1}, headers=headers)
        cart = (await client.post("/cart", json={"product_id": b, "quantity": 1}, headers=headers)).json()["data"]
        item_a = next(i["id"] for i in cart["items"] if i["product_id"] == a)
        item_b = next(i["id"] for i in cart["items"] if i["product_id"] == b)

        updated = await client.put(f"/cart/{item_a}", json={"quantity": 3}, headers=headers)
        assert updated.json()["data"]["total_amount"] == 31.0

        removed = await client.delete(f"/cart/{item_b}", headers=headers)
        assert removed.json()["data"]["total_items"] == 3

        count = await client.get("/cart/count", headers=headers)
        assert count.json()["data"] == {"count": 3}

    async def test_clear(self, client, auth, customer, make_product):
        headers = auth(customer)
        pid = await make_product()
        await client.post("/cart", json={"product_id": pid, "quantity": 2}, headers=headers)

        response = await client.delete("/cart", headers=headers)

        assert response.json()["data"]["total_items"] == 0
        assert response.json()["message"] == "Cart cleared successfully"

    async def test_count_without_cart(self, client, auth, customer):
        response = await client.get("/cart/count", headers=auth(customer))
        assert response.json()["data"]["count"] == 0

    async def test_remove_missing_item(self, client, auth, customer):
        response = await client.delete("/cart/1", headers=auth(customer))
        assert response.status_code == 404
        assert response.json()["message"] == "Cart not found"


class TestOrderEndpoints:
    async def test_checkout_then_cancel(self, client, auth, customer, make_product, stock_of):
        headers = auth(customer)
        pid = await make_product(stock=5)
        await client.post("/cart", json={"product_id": pid, "quantity": 3}, headers=headers)

        created = await client.post("/orders", json=_order_body(pid), headers=headers)
        assert created.status_code == 201
        order = created.json()["data"]
        assert order["status"] == "pending"
        assert order["total_price"] == 30.0
        assert await stock_of(pid) == 2
        assert (await client.get("/cart/count", headers=headers)).json()["data"]["count"] == 0

        paid = await client.put(f"/orders/{order['id']}/pay", json={"id": "PAY-1", "status": "COMPLETED"}, headers=headers)
        assert paid.json()["data"]["status"] == "processing"

        cancelled = await client.put(f"/orders/{order['id']}/cancel", headers=headers)
        assert cancelled.status_code == 200
        assert cancelled.json()["data"]["status"] == "cancelled"
        assert await stock_of(pid) == 5

        again = await client.put(f"/orders/{order['id']}/cancel", headers=headers)
        assert again.status_code == 400
        assert again.json()["message"] == "Order cannot be cancelled at this stage"
        assert await stock_of(pid) == 5

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"shipping_address": ADDRESS, "payment_method": "paypal"}, "No order items provided"),
            (
                {"order_items": [{"product_id": 1, "name": "x", "price": 1, "quantity": 1}]},
                "Shipping address and payment method are required",
            ),
        ],
    )
    async def test_malformed_checkout(self, client, auth, customer, body, message):
        response = await client.post("/orders", json=body, headers=auth(customer))

        assert response.status_code == 400
        assert response.json()["message"] == message

    async def test_unknown_payment_method(self, client, auth, customer, make_product):
        pid = await make_product()

        response = await client.post("/orders", json=_order_body(pid, payment_method="bitcoin"), headers=auth(customer))

        assert response.status_code == 400

    async def test_get_and_list(self, client, auth, customer, other_customer, make_product):
        pid = await make_product(stock=10)
        order = (await client.post("/orders", json=_order_body(pid, 1), headers=auth(customer))).json()["data"]

        mine = await client.get(f"/orders/{order['id']}", headers=auth(customer))
        assert mine.json()["data"]["order_number"] == order["order_number"]

        theirs = await client.get(f"/orders/{order['id']}", headers=auth(other_customer))
        assert theirs.status_code == 401

        listing = await client.get("/orders", headers=auth(customer))
        assert listing.json()["data"]["pagination"]["total"] == 1

        missing = await client.get("/orders/9999", headers=auth(customer))
        assert missing.status_code == 404


class TestAdminEndpoints:
    async def test_non_admin_rejected(self, client, auth, customer):
        response = await client.get("/orders/admin/all", headers=auth(customer))
        assert response.status_code == 401

    async def test_status_update_and_stats(self, client, auth, customer, admin, make_product):
        pid = await make_product(stock=10)
        order = (await client.post("/orders", json=_order_body(pid, 2), headers=auth(customer))).json()["data"]

        updated = await client.put(
            f"/orders/{order['id']}/status",
            json={"status": "delivered", "tracking_number": "TRK"},
            headers=auth(admin),
        )
        data = updated.json()["data"]
        assert data["status"] == "delivered"
        assert data["is_delivered"] is True
        assert data["tracking_number"] == "TRK"
        assert data["status_history"][-1]["status"] == "delivered"

        stats = await client.get("/orders/admin/stats", headers=auth(admin))
        assert stats.json()["data"]["overall"]["total_orders"] == 1

        listing = await client.get("/orders/admin/all", params={"status": "delivered"}, headers=auth(admin))
        assert len(listing.json()["data"]["orders"]) == 1

    async def test_invalid_status_value(self, client, auth, customer, admin, make_product):
        pid = await make_product()
        order = (await client.post("/orders", json=_order_body(pid, 1), headers=auth(customer))).json()["data"]

        response = await client.put(f"/orders/{order['id']}/status", json={"status": "lost"}, headers=auth(admin))

        assert response.status_code == 400

    async def test_create_product_requires_admin(self, client, auth, customer, admin):
        body = {"name": "Lamp", "price": 40.0, "discount": 25, "stock": 3}

        denied = await client.post("/products", json=body, headers=auth(customer))
        assert denied.status_code == 401

        created = await client.post("/products", json=body, headers=auth(admin))
        assert created.status_code == 201
        product = created.json()["data"]
        assert product["discounted_price"] == 30.0
        assert product["stock_status"] == "low-stock"

        fetched = await client.get(f"/products/{product['id']}")
        assert fetched.json()["data"]["name"] == "Lamp"
