"""
Tests for delivery assignment and the delivery person's workflow.
"""

from datetime import timedelta

import pytest

from rest_api.models import Delivery, Order
from shared.config.constants import Roles
from shared.utils.dates import utcnow
from tests.conftest import make_user


@pytest.fixture
def pending_order(db_session, company, customer):
    def _make(status="PENDING", **fields):
        order = Order(company_id=company.id, customer_id=customer.id, amount=80000, status=status, **fields)
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order

    return _make


class TestAssignment:
    def test_single_assignment(self, client, admin_headers, pending_order, delivery_user, push_client):
        order = pending_order()
        response = client.post(
            "/api/deliveries",
            json={"order_id": order.id, "delivery_person_id": delivery_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["order_id"] == order.id
        assert data["status"] == "PENDING"
        # No device token registered
        assert push_client.sent == []

    def test_single_assignment_conflict(self, client, admin_headers, pending_order, delivery_user):
        order = pending_order()
        body = {"order_id": order.id, "delivery_person_id": delivery_user.id}
        client.post("/api/deliveries", json=body, headers=admin_headers)

        response = client.post("/api/deliveries", json=body, headers=admin_headers)
        assert response.status_code == 409

    def test_batch_skips_invalid_orders(
        self, client, db_session, admin_headers, pending_order, delivery_user, push_client
    ):
        delivery_user.push_token = "ExponentPushToken[xyz]"
        db_session.commit()
        ok1, ok2 = pending_order(), pending_order()
        in_review = pending_order(status="PENDING_REVIEW")

        response = client.post(
            "/api/deliveries",
            json={"order_ids": [ok1.id, ok2.id, in_review.id, 9999], "delivery_person_id": delivery_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["assigned"] == 2
        assert sorted(response.json()["order_ids"]) == sorted([ok1.id, ok2.id])
        assert push_client.sent[0].data == {"type": "DELIVERIES_ASSIGNED", "count": 2}

    def test_batch_with_nothing_valid(self, client, admin_headers, pending_order, delivery_user):
        order = pending_order(status="DELIVERED")
        response = client.post(
            "/api/deliveries",
            json={"order_ids": [order.id], "delivery_person_id": delivery_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_requires_order_id_or_ids(self, client, admin_headers, delivery_user):
        response = client.post("/api/deliveries", json={"delivery_person_id": delivery_user.id}, headers=admin_headers)
        assert response.status_code == 400


class TestDeliveryWorkflow:
    def test_start_then_deliver(self, client, db_session, delivery_headers, pending_order, delivery_user):
        order = pending_order()

        started = client.patch(f"/api/deliveries/{order.id}/start", headers=delivery_headers)
        assert started.status_code == 200
        assert started.json()["status"] == "IN_DELIVERY"
        assert started.json()["delivery"]["delivery_person_id"] == delivery_user.id

        delivered = client.patch(
            f"/api/deliveries/{order.id}/deliver",
            json={"notes": "Recibió el dueño"},
            headers=delivery_headers,
        )
        assert delivered.status_code == 200
        body = delivered.json()
        assert body["status"] == "DELIVERED"
        assert body["delivery"]["status"] == "DELIVERED"
        assert body["delivery"]["delivered_at"] is not None

    def test_start_requires_pending(self, client, delivery_headers, pending_order):
        order = pending_order(status="PENDING_REVIEW")
        assert client.patch(f"/api/deliveries/{order.id}/start", headers=delivery_headers).status_code == 404

    def test_deliver_without_body(self, client, delivery_headers, pending_order):
        order = pending_order()
        response = client.patch(f"/api/deliveries/{order.id}/deliver", headers=delivery_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "DELIVERED"

    def test_cannot_deliver_twice(self, client, delivery_headers, pending_order):
        order = pending_order()
        client.patch(f"/api/deliveries/{order.id}/deliver", headers=delivery_headers)
        response = client.patch(f"/api/deliveries/{order.id}/deliver", headers=delivery_headers)
        assert response.status_code == 400

    def test_fail_returns_order_to_pending(self, client, db_session, delivery_headers, pending_order):
        order = pending_order()
        client.patch(f"/api/deliveries/{order.id}/start", headers=delivery_headers)

        response = client.patch(
            f"/api/deliveries/{order.id}/fail",
            json={"notes": "Local cerrado"},
            headers=delivery_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert response.json()["delivery"]["status"] == "FAILED"
        assert response.json()["delivery"]["notes"] == "Local cerrado"

    def test_admin_cannot_use_delivery_workflow(self, client, admin_headers, pending_order):
        order = pending_order()
        assert client.patch(f"/api/deliveries/{order.id}/start", headers=admin_headers).status_code == 403

    def test_today_list(self, client, delivery_headers, pending_order):
        today = pending_order(delivery_date=utcnow())
        pending_order(delivery_date=utcnow() + timedelta(days=3))
        pending_order(status="DELIVERED", delivery_date=utcnow())

        response = client.get("/api/deliveries/today", headers=delivery_headers)
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [today.id]


class TestReassignAfterFailure:
    """A FAILED delivery puts the order back in the assignment pool."""

    def _fail(self, client, order, delivery_headers):
        client.patch(f"/api/deliveries/{order.id}/start", headers=delivery_headers)
        response = client.patch(
            f"/api/deliveries/{order.id}/fail", json={"notes": "Local cerrado"}, headers=delivery_headers
        )
        assert response.json()["status"] == "PENDING"

    def test_failed_order_listed_and_reassigned(
        self, client, db_session, admin_headers, delivery_headers, pending_order, company, push_client
    ):
        order = pending_order()
        self._fail(client, order, delivery_headers)

        unassigned = client.get("/api/orders/unassigned", headers=admin_headers)
        assert [o["id"] for o in unassigned.json()] == [order.id]

        other = make_user(db_session, company, Roles.DELIVERY, "otro@test.co", name="Otro Repartidor")
        response = client.post(
            "/api/deliveries",
            json={"order_id": order.id, "delivery_person_id": other.id},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["delivery_person_id"] == other.id
        assert response.json()["status"] == "PENDING"
        assert response.json()["notes"] is None

        assert db_session.query(Delivery).filter_by(order_id=order.id).count() == 1
        assert client.get("/api/orders/unassigned", headers=admin_headers).json() == []

    def test_failed_order_in_batch(self, client, admin_headers, delivery_headers, pending_order, delivery_user):
        order = pending_order()
        self._fail(client, order, delivery_headers)

        response = client.post(
            "/api/deliveries",
            json={"order_ids": [order.id], "delivery_person_id": delivery_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["order_ids"] == [order.id]

    def test_live_delivery_still_conflicts(self, client, admin_headers, delivery_headers, pending_order, delivery_user):
        order = pending_order()
        client.patch(f"/api/deliveries/{order.id}/start", headers=delivery_headers)
        response = client.post(
            "/api/deliveries",
            json={"order_id": order.id, "delivery_person_id": delivery_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 409
