"""
Tests for plan limits on customers, vendors and delivery persons.
"""

import pytest

from rest_api.models import Plan
from rest_api.services.plan_limits import (
    count_active_users,
    enforce_customer_limit,
    enforce_user_limit,
    limit_reached,
)
from shared.config.constants import Roles
from shared.utils.exceptions import PlanLimitError, SubscriptionReadOnlyError
from tests.conftest import headers_for, make_company, make_customer, make_user


@pytest.fixture
def mini_plan(db_session):
    plan = Plan(
        name="MINI",
        display_name="Mini",
        price=1000,
        max_vendors=1,
        max_customers=1,
        max_delivery=1,
    )
    db_session.add(plan)
    db_session.commit()
    return plan


@pytest.fixture
def mini_company(db_session, mini_plan):
    return make_company(db_session, mini_plan, name="Mini Distribuciones")


@pytest.fixture
def mini_admin(db_session, mini_company):
    return make_user(db_session, mini_company, Roles.ADMIN, "admin@mini.co")


class TestLimitReached:
    def test_unlimited(self):
        assert limit_reached(10_000, -1) is False

    def test_below_and_at_limit(self):
        assert limit_reached(2, 3) is False
        assert limit_reached(3, 3) is True


class TestEnforce:
    """Service-level enforcement."""

    def test_customer_limit(self, db_session, mini_company):
        enforce_customer_limit(db_session, mini_company.id)
        make_customer(db_session, mini_company)
        with pytest.raises(PlanLimitError) as exc:
            enforce_customer_limit(db_session, mini_company.id)
        assert exc.value.status_code == 403
        assert "máximo 1 clientes" in exc.value.detail

    def test_inactive_customers_free_slots(self, db_session, mini_company):
        make_customer(db_session, mini_company, is_active=False)
        enforce_customer_limit(db_session, mini_company.id)

    def test_admin_role_never_limited(self, db_session, mini_company):
        make_user(db_session, mini_company, Roles.ADMIN, "a1@mini.co")
        enforce_user_limit(db_session, mini_company.id, Roles.ADMIN)

    def test_vendor_limit_counts_only_active(self, db_session, mini_company):
        make_user(db_session, mini_company, Roles.VENDOR, "old@mini.co", is_active=False)
        assert count_active_users(db_session, mini_company.id, Roles.VENDOR) == 0
        enforce_user_limit(db_session, mini_company.id, Roles.VENDOR)

        make_user(db_session, mini_company, Roles.VENDOR, "v@mini.co")
        with pytest.raises(PlanLimitError):
            enforce_user_limit(db_session, mini_company.id, Roles.VENDOR)

    def test_no_subscription_is_read_only(self, db_session, mini_company):
        db_session.delete(mini_company.subscription)
        db_session.commit()
        with pytest.raises(SubscriptionReadOnlyError):
            enforce_customer_limit(db_session, mini_company.id)


class TestLimitEndpoints:
    """Limits surface as 403 with the plan message."""

    def test_second_customer_rejected(self, client, mini_admin):
        headers = headers_for(mini_admin)
        body = {"name": "Tienda Uno", "lat": 4.6, "lng": -74.1}

        assert client.post("/api/customers", json=body, headers=headers).status_code == 201
        response = client.post("/api/customers", json={**body, "name": "Tienda Dos"}, headers=headers)
        assert response.status_code == 403
        assert "Actualiza tu plan" in response.json()["detail"]

    def test_second_delivery_person_rejected(self, client, mini_admin):
        headers = headers_for(mini_admin)

        def create(email):
            return client.post(
                "/api/users",
                json={"name": "Repartidor", "email": email, "password": "123456", "role": "DELIVERY"},
                headers=headers,
            )

        assert create("r1@mini.co").status_code == 201
        response = create("r2@mini.co")
        assert response.status_code == 403
        assert "repartidor" in response.json()["detail"]

    def test_reactivating_user_checks_limit(self, client, db_session, mini_admin, mini_company):
        make_user(db_session, mini_company, Roles.VENDOR, "v1@mini.co")
        inactive = make_user(db_session, mini_company, Roles.VENDOR, "v2@mini.co", is_active=False)

        response = client.patch(
            f"/api/users/{inactive.id}",
            json={"is_active": True},
            headers=headers_for(mini_admin),
        )
        assert response.status_code == 403
