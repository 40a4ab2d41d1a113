"""Integration tests for vendor-facing endpoints via TestClient."""

from decimal import Decimal

from storefront.data.models.abandoned_cart import AbandonedCartModel


def _place_order(client, product, checkout_body, quantity=1):
    client.post("/cart/items", json={"product_id": product.id, "quantity": quantity})
    response = client.post("/orders", json=checkout_body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCouponEndpoints:
    def test_create_and_list(self, client, store):
        response = client.post(
            f"/stores/{store.id}/coupons",
            json={"code": "ship-free", "discount_type": "FREE_SHIPPING"},
        )
        assert response.status_code == 201
        assert response.json()["code"] == "SHIP-FREE"

        coupons = client.get(f"/stores/{store.id}/coupons").json()
        assert [c["code"] for c in coupons] == ["SHIP-FREE"]

    def test_duplicate_code_conflicts(self, client, store):
        body = {"code": "DUP10", "discount_type": "FIXED_AMOUNT", "discount_value": "10"}
        assert client.post(f"/stores/{store.id}/coupons", json=body).status_code == 201
        assert client.post(f"/stores/{store.id}/coupons", json=body).status_code == 409

    def test_percentage_over_100_rejected(self, client, store):
        body = {"code": "TOOMUCH", "discount_type": "PERCENTAGE", "discount_value": "150"}
        assert client.post(f"/stores/{store.id}/coupons", json=body).status_code == 400

    def test_deactivate(self, client, store):
        created = client.post(
            f"/stores/{store.id}/coupons",
            json={"code": "BYE", "discount_type": "FIXED_AMOUNT", "discount_value": "1"},
        ).json()
        response = client.post(f"/stores/{store.id}/coupons/{created['id']}/deactivate")
        assert response.json()["is_active"] is False


class TestVendorOrderEndpoints:
    def test_cancel_restores_stock(self, db, client, make_product, checkout_body, store):
        product = make_product(quantity=5)
        order = _place_order(client, product, checkout_body, quantity=3)

        response = client.post(f"/stores/{store.id}/orders/{order['id']}/cancel", json={"reason": "Out of gift wrap"})
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

        db.refresh(product)
        assert product.quantity == 5

    def test_cannot_cancel_shipped(self, client, make_product, checkout_body, store):
        product = make_product(quantity=5)
        order = _place_order(client, product, checkout_body)

        shipped = client.post(f"/stores/{store.id}/orders/{order['id']}/fulfillment", json={"status": "SHIPPED"})
        assert shipped.json()["fulfillment_status"] == "SHIPPED"

        response = client.post(f"/stores/{store.id}/orders/{order['id']}/cancel", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot cancel orders that have been shipped or delivered"

    def test_other_store_gets_404(self, client, make_product, make_store, checkout_body):
        other = make_store()
        product = make_product()
        order = _place_order(client, product, checkout_body)
        assert client.post(f"/stores/{other.id}/orders/{order['id']}/cancel", json={}).status_code == 404

    def test_refund_after_payment(self, client, make_product, checkout_body, notifier):
        product = make_product()
        order = _place_order(client, product, checkout_body)

        assert client.post(f"/orders/{order['id']}/refund").status_code == 400

        client.post(f"/orders/{order['id']}/payment", json={"succeeded": True})
        response = client.post(f"/orders/{order['id']}/refund")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "REFUNDED"
        assert body["payment_status"] == "REFUNDED"
        assert body["refunded_at"] is not None
        assert notifier.refunds == [(order["id"], "jane@example.com")]


class TestInventoryEndpoints:
    def test_low_stock_for_store(self, client, make_product, make_store, store):
        mug = make_product(quantity=2, low_stock_threshold=3, name="Mug")
        make_product(quantity=9, low_stock_threshold=3, name="Plate")
        other = make_store()
        make_product(quantity=0, store_id=other.id, name="Bowl")

        response = client.get(f"/stores/{store.id}/inventory/low-stock")

        assert response.status_code == 200
        assert response.json() == [
            {
                "product_id": mug.id,
                "variant_id": None,
                "combination_id": None,
                "name": "Mug",
                "quantity": 2,
                "threshold": 3,
            }
        ]

class TestAbandonedCartEndpoints:
    def test_track_snapshot(self, client, make_product):
        product = make_product(price="29.99")
        client.post("/cart/items", json={"product_id": product.id, "quantity": 2})

        tracked = client.post("/cart/track-abandoned", json={"customer_email": "jane@example.com"})
        assert tracked.status_code == 200
        body = tracked.json()
        assert Decimal(body["cart_total"]) == Decimal("59.98")
        assert body["discount_code"].startswith("RECOVER")
        assert body["is_recovered"] is False

    def test_track_without_cart(self, client):
        assert client.post("/cart/track-abandoned", json={}).status_code == 404

    def test_recover_redirects_with_new_cookie(self, db, client, make_product):
        product = make_product(price="29.99")
        client.post("/cart/items", json={"product_id": product.id, "quantity": 2})
        original = client.cookies.get("cart_id")
        client.post("/cart/track-abandoned", json={"customer_email": "jane@example.com"})
        record = db.query(AbandonedCartModel).one()

        client.cookies.clear()
        response = client.get(f"/cart/recover?token={record.recovery_token}", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/cart?recovered=true"
        new_session = client.cookies.get("cart_id")
        assert new_session and new_session != original
        assert Decimal(client.get("/cart").json()["subtotal"]) == Decimal("59.98")

        again = client.get(f"/cart/recover?token={record.recovery_token}", follow_redirects=False)
        assert again.status_code == 409

    def test_list_and_remind(self, client, make_product, store, notifier):
        product = make_product()
        client.post("/cart/items", json={"product_id": product.id, "quantity": 1})
        client.post("/cart/track-abandoned", json={"customer_email": "jane@example.com"})

        carts = client.get(f"/stores/{store.id}/abandoned-carts").json()
        assert len(carts) == 1

        response = client.post(f"/stores/{store.id}/abandoned-carts/{carts[0]['id']}/reminder", json={"stage": 1})
        assert response.status_code == 200
        assert response.json()["reminder_sent_at"] is not None
        assert len(notifier.recoveries) == 1

        again = client.post(f"/stores/{store.id}/abandoned-carts/{carts[0]['id']}/reminder", json={"stage": 1})
        assert again.status_code == 409


class TestReviewEndpoint:
    def test_unknown_item(self, client):
        assert client.get("/reviews/eligibility?order_item_id=999").status_code == 404

    def test_unpaid_item_not_eligible(self, client, make_product, checkout_body):
        product = make_product()
        order = _place_order(client, product, checkout_body)
        body = client.get(f"/reviews/eligibility?order_item_id={order['items'][0]['id']}").json()
        assert body["eligible"] is False
        assert body["reason"] == "Order has not been paid"
