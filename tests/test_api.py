from decimal import Decimal

from fastapi import Depends
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from storefront.crud import OrderStore
from storefront.database import get_db
from storefront.main import app, get_order_service
from storefront.services import OrderPlacementService


def checkout(*lines, **overrides):
    payload = {
        "user_id": "42",
        "customer_name": "Linus Torvalds",
        "customer_email": "linus@example.com",
        "shipping_address": "1 Kernel Way, Portland",
        "payment_method": "card",
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
    }
    payload.update(overrides)
    return payload


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_metrics_exposes_order_counters(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "orders_total" in response.text


def test_place_order(client, make_product):
    product_id = make_product(name="Phone A", price="100.00", stock=5)

    response = client.post("/api/orders", json=checkout((product_id, 2)))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "Pending"
    assert Decimal(body["total_amount"]) == Decimal("200.00")
    assert len(body["items"]) == 1
    item = body["items"][0]
    assert item["product_id"] == product_id
    assert item["product_name"] == "Phone A"
    assert item["quantity"] == 2
    assert Decimal(item["price"]) == Decimal("100.00")

    assert client.get(f"/api/products/{product_id}").json()["stock"] == 3

    fetched = client.get(f"/api/orders/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["items"] == body["items"]
    assert fetched.json()["total_amount"] == body["total_amount"]


def test_place_order_insufficient_stock(client, make_product):
    product_id = make_product(stock=1)

    response = client.post("/api/orders", json=checkout((product_id, 3)))

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "insufficient_stock"
    assert body["product_id"] == product_id
    assert body["available"] == 1
    assert body["requested"] == 3
    assert client.get(f"/api/products/{product_id}").json()["stock"] == 1
    assert client.get("/api/orders").json() == []


def test_place_order_unknown_product(client, make_product):
    product_id = make_product(stock=5)

    response = client.post("/api/orders", json=checkout((product_id, 1), (777, 1)))

    assert response.status_code == 404
    assert response.json()["error"] == "product_not_found"
    assert client.get(f"/api/products/{product_id}").json()["stock"] == 5
    assert client.get("/api/orders").json() == []


def test_place_order_validation_error(client, make_product):
    product_id = make_product()

    response = client.post("/api/orders", json=checkout((product_id, 0)))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_malformed_payload_is_rejected_at_the_boundary(client):
    response = client.post("/api/orders", json={"customer_name": "x", "items": "lots"})
    assert response.status_code == 422


def test_update_order_status(client, make_product):
    product_id = make_product()
    order_id = client.post("/api/orders", json=checkout((product_id, 1))).json()["id"]

    response = client.put(f"/api/orders/{order_id}/status", json={"status": "Shipped"})

    assert response.status_code == 200
    assert response.json()["status"] == "Shipped"
    assert client.get(f"/api/orders/{order_id}").json()["status"] == "Shipped"


def test_update_order_status_invalid(client, make_product):
    product_id = make_product()
    order_id = client.post("/api/orders", json=checkout((product_id, 1))).json()["id"]

    response = client.put(f"/api/orders/{order_id}/status", json={"status": "Teleported"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_status"
    assert "Delivered" in response.json()["valid_statuses"]


def test_update_status_of_missing_order(client):
    response = client.put("/api/orders/99/status", json={"status": "Shipped"})
    assert response.status_code == 404
    assert response.json()["error"] == "order_not_found"


def test_orders_by_user(client, make_product):
    product_id = make_product(stock=10)
    client.post("/api/orders", json=checkout((product_id, 1), user_id="u-1"))
    client.post("/api/orders", json=checkout((product_id, 1), user_id="u-2"))

    orders = client.get("/api/orders/user/u-1").json()

    assert [o["user_id"] for o in orders] == ["u-1"]


def test_product_crud(client):
    payload = {
        "name": "Sony WH-1000XM5",
        "brand": "Sony",
        "price": "399.99",
        "original_price": "449.99",
        "category": "Audio",
        "stock": 40,
        "is_featured": True,
    }

    created = client.post("/api/products", json=payload)
    assert created.status_code == 201
    product_id = created.json()["id"]

    duplicate = client.post("/api/products", json=payload)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "conflict"

    updated = client.put(f"/api/products/{product_id}", json={"price": "379.99"})
    assert updated.status_code == 200
    assert Decimal(updated.json()["price"]) == Decimal("379.99")
    assert updated.json()["stock"] == 40

    negative = client.put(f"/api/products/{product_id}", json={"price": "-1"})
    assert negative.status_code == 400

    audio = client.get("/api/products/category/audio").json()
    assert [p["id"] for p in audio] == [product_id]

    assert client.delete(f"/api/products/{product_id}").status_code == 204
    assert client.get(f"/api/products/{product_id}").status_code == 404
    assert client.delete(f"/api/products/{product_id}").status_code == 404


def test_create_product_negative_price(client):
    response = client.post("/api/products", json={"name": "Broken", "price": "-10.00"})
    assert response.status_code == 400
    assert client.get("/api/products").json() == []


def test_out_of_range_product_id_is_not_found(client, make_product):
    product_id = make_product(stock=5)

    response = client.post("/api/orders", json=checkout((product_id, 1), (2**63, 1)))

    assert response.status_code == 404
    assert response.json()["error"] == "product_not_found"
    assert response.json()["product_id"] == 2**63
    assert client.get(f"/api/products/{product_id}").json()["stock"] == 5
    assert client.get("/api/orders").json() == []


def test_out_of_range_path_ids_are_not_found(client):
    huge = 2**63

    assert client.get(f"/api/products/{huge}").status_code == 404
    assert client.put(f"/api/products/{huge}", json={"stock": 1}).status_code == 404
    assert client.delete(f"/api/products/{huge}").status_code == 404
    assert client.get(f"/api/orders/{huge}").status_code == 404
    assert client.put(f"/api/orders/{huge}/status", json={"status": "Shipped"}).status_code == 404


def test_pagination_bounds_are_validated(client):
    assert client.get("/api/products", params={"skip": -1}).status_code == 422
    assert client.get("/api/orders", params={"limit": 0}).status_code == 422


class FailingOrderStore(OrderStore):
    """Writes the order rows, then loses the database before COMMIT."""

    def create(self, order):
        super().create(order)
        raise OperationalError("INSERT INTO orders", {}, Exception("disk I/O error"))


def test_storage_failure_rolls_back_and_reports_500(client, make_product):
    product_id = make_product(stock=5)

    def failing_order_service(db: Session = Depends(get_db)):
        return OrderPlacementService(db, orders=FailingOrderStore(db))

    app.dependency_overrides[get_order_service] = failing_order_service

    response = client.post("/api/orders", json=checkout((product_id, 2)))

    assert response.status_code == 500
    assert response.json()["error"] == "storage_error"
    del app.dependency_overrides[get_order_service]
    assert client.get(f"/api/products/{product_id}").json()["stock"] == 5
    assert client.get("/api/orders").json() == []
