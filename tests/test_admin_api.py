"""Tests for the admin order endpoints."""

from datetime import timedelta

import pytest

from conftest import (
    add_order,
    add_product,
    admin_headers,
    customer_headers,
    stock_of,
)
from orderflow.models.order import Order, OrderStatus
from orderflow.utils import utcnow


@pytest.fixture
def product(db):
    return add_product(db, stock=10)


class TestAdminGuard:
    @pytest.mark.parametrize("method,path", [
        ("get", "/admin/orders"),
        ("put", "/admin/orders"),
        ("delete", "/admin/orders?orderId=1"),
    ])
    def test_customers_are_forbidden(self, client, method, path):
        kwargs = {"json": {"orderId": 1, "status": "PROCESSING"}} if method == "put" else {}
        response = getattr(client, method)(path, headers=customer_headers(), **kwargs)
        assert response.status_code == 403

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/admin/orders").status_code == 401


class TestListOrders:
    def test_statistics(self, client, db, product):
        add_order(db, [(product, 1)], total="100.00")
        add_order(db, [(product, 1)], status=OrderStatus.CONFIRMED, inventory_reserved=True, total="708.00")
        add_order(db, [(product, 1)], status=OrderStatus.DELIVERED, total="522.00")
        add_order(db, [(product, 1)], status=OrderStatus.CANCELLED, total="300.00")

        response = client.get("/admin/orders", headers=admin_headers())
        assert response.status_code == 200
        data = response.json()

        stats = data["statistics"]
        assert stats["pending"] == 1
        assert stats["confirmed"] == 1
        assert stats["delivered"] == 1
        assert stats["cancelled"] == 1
        assert stats["outForDelivery"] == 0
        assert stats["totalRevenue"] == 1230.0
        assert stats["todayOrders"] == 4

        assert data["pagination"] == {
            "page": 1,
            "limit": 20,
            "totalCount": 4,
            "totalPages": 1,
            "hasNext": False,
            "hasPrev": False,
        }
        summary = data["orders"][0]
        assert summary["itemCount"] == 1
        assert summary["latestTracking"]["status"] == "PENDING"

    def test_filter_by_status(self, client, db, product):
        add_order(db, [(product, 1)])
        shipped = add_order(db, [(product, 1)], status=OrderStatus.SHIPPED)

        response = client.get("/admin/orders?status=SHIPPED", headers=admin_headers())
        data = response.json()
        assert [o["id"] for o in data["orders"]] == [shipped.id]
        assert data["pagination"]["totalCount"] == 1
        # Statistics always cover every order
        assert data["statistics"]["pending"] == 1

    def test_search_by_customer(self, client, db, product):
        add_order(db, [(product, 1)], customer_name="Ravi Kumar", customer_email="ravi@example.com")
        wanted = add_order(db, [(product, 1)], customer_name="Meera Iyer", customer_email="meera@example.com")

        for term in ("meera", "MEERA@EXAMPLE", wanted.order_number[-6:]):
            response = client.get("/admin/orders", params={"search": term}, headers=admin_headers())
            assert [o["id"] for o in response.json()["orders"]] == [wanted.id]

    def test_filter_by_payment_status(self, client, db, product):
        add_order(db, [(product, 1)])
        paid = add_order(db, [(product, 1)], status=OrderStatus.CONFIRMED, paid_amount="708.00")

        response = client.get("/admin/orders?paymentStatus=COMPLETED", headers=admin_headers())
        assert [o["id"] for o in response.json()["orders"]] == [paid.id]

    def test_filter_by_date_range(self, client, db, product):
        order = add_order(db, [(product, 1)])
        start = (utcnow() - timedelta(hours=1)).isoformat()
        end = (utcnow() + timedelta(hours=1)).isoformat()

        response = client.get("/admin/orders", params={"startDate": start, "endDate": end}, headers=admin_headers())
        assert [o["id"] for o in response.json()["orders"]] == [order.id]

        later = (utcnow() + timedelta(days=1)).isoformat()
        response = client.get("/admin/orders", params={"startDate": later}, headers=admin_headers())
        assert response.json()["orders"] == []

    def test_pagination(self, client, db, product):
        for _ in range(5):
            add_order(db, [(product, 1)])

        response = client.get("/admin/orders?page=2&limit=2", headers=admin_headers())
        pagination = response.json()["pagination"]
        assert pagination["totalPages"] == 3
        assert pagination["hasNext"] is True
        assert pagination["hasPrev"] is True
        assert len(response.json()["orders"]) == 2


class TestUpdateStatus:
    def test_ship_with_tracking_number(self, client, db, product):
        order = add_order(db, [(product, 2)], status=OrderStatus.PROCESSING, inventory_reserved=True)

        response = client.put(
            "/admin/orders",
            json={"orderId": order.id, "status": "SHIPPED", "trackingNumber": "DTDC998877", "notes": "Dispatched"},
            headers=admin_headers(),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Order status updated to SHIPPED successfully"
        assert data["order"]["status"] == "SHIPPED"
        assert data["order"]["trackingNumber"] == "DTDC998877"
        assert data["tracking"]["message"] == "Dispatched"
        assert data["tracking"]["location"] == "In Transit"

    def test_invalid_transition_reports_allowed_statuses(self, client, db, product):
        order = add_order(db, [(product, 1)], status=OrderStatus.DELIVERED)

        response = client.put(
            "/admin/orders",
            json={"orderId": order.id, "status": "PROCESSING"},
            headers=admin_headers(),
        )
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_TRANSITION"
        assert data["validTransitions"] == ["RETURNED"]

        db.expire_all()
        assert db.get(Order, order.id).status == OrderStatus.DELIVERED

    def test_admin_confirm_reserves_and_notifies(self, client, db, publisher, product):
        order = add_order(db, [(product, 3)])

        response = client.put(
            "/admin/orders",
            json={"orderId": order.id, "status": "CONFIRMED"},
            headers=admin_headers(),
        )
        assert response.status_code == 200
        assert stock_of(db, product.id) == (10, 3)
        assert publisher.templates == ["order_confirmed"]

    def test_deliver_commits_stock(self, client, db):
        product = add_product(db, stock=10, reserved=3)
        order = add_order(db, [(product, 3)], status=OrderStatus.SHIPPED, inventory_reserved=True)

        response = client.put(
            "/admin/orders",
            json={"orderId": order.id, "status": "DELIVERED"},
            headers=admin_headers(),
        )
        assert response.status_code == 200
        assert stock_of(db, product.id) == (7, 0)

    def test_unknown_status_rejected(self, client, db, product):
        order = add_order(db, [(product, 1)])
        response = client.put(
            "/admin/orders",
            json={"orderId": order.id, "status": "DELETED"},
            headers=admin_headers(),
        )
        assert response.status_code == 422

    def test_unknown_order(self, client):
        response = client.put("/admin/orders", json={"orderId": 999, "status": "SHIPPED"}, headers=admin_headers())
        assert response.status_code == 404


class TestAdminCancel:
    def test_cancel_processing_order_releases_stock(self, client, db, publisher):
        product = add_product(db, stock=10, reserved=4)
        order = add_order(db, [(product, 4)], status=OrderStatus.PROCESSING, inventory_reserved=True)

        response = client.delete(
            "/admin/orders",
            params={"orderId": order.id, "reason": "Out of service area"},
            headers=admin_headers(),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["orderId"] == order.id
        assert data["reason"] == "Out of service area"
        assert data["tracking"]["status"] == "CANCELLED"

        assert stock_of(db, product.id) == (10, 0)
        assert publisher.templates == ["order_cancelled"]

    def test_default_reason(self, client, db, product):
        order = add_order(db, [(product, 1)])
        response = client.delete(f"/admin/orders?orderId={order.id}", headers=admin_headers())
        assert response.json()["reason"] == "Cancelled by admin"

    def test_shipped_order_cannot_be_cancelled(self, client, db, product):
        order = add_order(db, [(product, 1)], status=OrderStatus.SHIPPED, inventory_reserved=True)

        response = client.delete(f"/admin/orders?orderId={order.id}", headers=admin_headers())
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "CANNOT_CANCEL"
        assert data["currentStatus"] == "SHIPPED"
        assert data["cancellableStatuses"] == ["PENDING", "CONFIRMED", "PROCESSING"]

    def test_missing_order_id(self, client):
        assert client.delete("/admin/orders", headers=admin_headers()).status_code == 422
