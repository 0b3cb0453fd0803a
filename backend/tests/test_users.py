"""
Tests for team management, field-user location and visit reminders.
"""

from shared.config.constants import ErrorMessages, Roles
from tests.conftest import headers_for, make_user


class TestListUsers:
    def test_lists_whole_company(self, client, admin, vendor, delivery_user, admin_headers):
        response = client.get("/api/users", headers=admin_headers)
        assert response.status_code == 200
        assert {u["email"] for u in response.json()} == {
            "admin@test.co",
            "vendedor@test.co",
            "repartidor@test.co",
        }

    def test_field_filter_includes_position(self, client, db_session, admin_headers, vendor, delivery_user):
        vendor.last_lat, vendor.last_lng = 4.6, -74.07
        db_session.commit()

        rows = client.get("/api/users", params={"role": "field"}, headers=admin_headers).json()
        assert {u["role"] for u in rows} == {"VENDOR", "DELIVERY"}
        by_email = {u["email"]: u for u in rows}
        assert by_email["vendedor@test.co"]["last_lat"] == 4.6

    def test_vendor_cannot_list(self, client, vendor_headers):
        assert client.get("/api/users", headers=vendor_headers).status_code == 403


class TestCreateUser:
    def test_create_field_user(self, client, admin_headers):
        response = client.post(
            "/api/users",
            json={"name": "Pedro", "email": "Pedro@Test.co", "password": "clave123", "role": "DELIVERY"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "pedro@test.co"
        assert data["role"] == "DELIVERY"
        assert "password" not in data

    def test_duplicate_email_across_companies(self, client, admin_headers, vendor):
        response = client.post(
            "/api/users",
            json={"name": "Otro", "email": "VENDEDOR@test.co", "password": "clave123", "role": "VENDOR"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.USER_EMAIL_EXISTS

    def test_admin_role_not_creatable(self, client, admin_headers):
        response = client.post(
            "/api/users",
            json={"name": "Jefe", "email": "jefe@test.co", "password": "clave123", "role": "ADMIN"},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestUpdateUser:
    def test_admin_role_locked(self, client, admin, admin_headers):
        response = client.patch(f"/api/users/{admin.id}", json={"role": "VENDOR"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == ErrorMessages.ADMIN_ROLE_LOCKED

    def test_deactivate_and_rename(self, client, vendor, admin_headers):
        response = client.patch(
            f"/api/users/{vendor.id}",
            json={"is_active": False, "name": "Victor V."},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["name"] == "Victor V."

    def test_deactivated_user_cannot_log_in(self, client, vendor, admin_headers):
        client.patch(f"/api/users/{vendor.id}", json={"is_active": False}, headers=admin_headers)
        response = client.post("/api/auth/login", json={"email": "vendedor@test.co", "password": "secret123"})
        assert response.status_code == 401

    def test_other_company_user(self, client, db_session, plans, admin_headers):
        from tests.conftest import make_company

        other = make_company(db_session, plans["BASICO"], name="Otra")
        stranger = make_user(db_session, other, Roles.VENDOR, "ajeno@test.co")
        response = client.patch(f"/api/users/{stranger.id}", json={"name": "X Y"}, headers=admin_headers)
        assert response.status_code == 404


class TestLocation:
    def test_vendor_location_is_stored_and_published(self, client, db_session, vendor, vendor_headers, broadcaster):
        published = []

        async def record(company_id, payload):
            published.append((company_id, payload))

        broadcaster.publish = record

        response = client.patch("/api/users/location", json={"lat": 4.61, "lng": -74.08}, headers=vendor_headers)
        assert response.status_code == 200

        db_session.refresh(vendor)
        assert (vendor.last_lat, vendor.last_lng) == (4.61, -74.08)
        assert vendor.last_seen_at is not None

        company_id, payload = published[0]
        assert company_id == vendor.company_id
        assert payload["user_id"] == vendor.id
        assert payload["role"] == "VENDOR"
        assert payload["lat"] == 4.61

    def test_admin_does_not_report_location(self, client, admin_headers):
        response = client.patch("/api/users/location", json={"lat": 4.61, "lng": -74.08}, headers=admin_headers)
        assert response.status_code == 403

    def test_push_token_allowed_for_any_role(self, client, db_session, admin, admin_headers):
        response = client.patch(
            "/api/users/push-token",
            json={"token": "ExponentPushToken[admin]"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        db_session.refresh(admin)
        assert admin.push_token == "ExponentPushToken[admin]"


class TestRemindVisit:
    def test_vendor_without_device(self, client, vendor, admin_headers):
        response = client.post(f"/api/vendors/{vendor.id}/remind-visit", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == ErrorMessages.VENDOR_WITHOUT_DEVICE

    def test_reminder_push(self, client, db_session, company, admin_headers, push_client):
        vendor = make_user(db_session, company, Roles.VENDOR, "movil@test.co", name="Marta", push_token="ExponentPushToken[m]")

        response = client.post(f"/api/vendors/{vendor.id}/remind-visit", headers=admin_headers)
        assert response.status_code == 200

        message = push_client.sent[0]
        assert message.to == "ExponentPushToken[m]"
        assert message.data == {"type": "VISIT_REMINDER", "vendorId": vendor.id}
        assert "Marta" in message.body

    def test_reminder_for_customer(self, client, db_session, company, customer, admin_headers, push_client):
        vendor = make_user(db_session, company, Roles.VENDOR, "movil@test.co", push_token="ExponentPushToken[m]")

        response = client.post(
            f"/api/vendors/{vendor.id}/remind-visit",
            json={"customer_id": customer.id},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert push_client.sent[0].data["customerId"] == customer.id
        assert customer.name in push_client.sent[0].body

    def test_delivery_is_not_a_vendor(self, client, delivery_user, admin_headers):
        response = client.post(f"/api/vendors/{delivery_user.id}/remind-visit", headers=admin_headers)
        assert response.status_code == 404

    def test_vendor_cannot_remind(self, client, vendor, vendor_headers):
        response = client.post(f"/api/vendors/{vendor.id}/remind-visit", headers=vendor_headers)
        assert response.status_code == 403


def test_stream_requires_admin(client, delivery_user):
    response = client.get("/api/vendors/stream", headers=headers_for(delivery_user))
    assert response.status_code == 403
