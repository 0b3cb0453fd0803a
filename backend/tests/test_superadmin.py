"""
Tests for the SUPER_ADMIN console: companies, subscriptions and plans.
"""

from datetime import timedelta

from rest_api.models import Company
from rest_api.services.domain.superadmin_service import period_end_for
from shared.config.constants import ErrorMessages, Roles
from shared.utils.dates import add_months, as_utc, utcnow
from tests.conftest import make_customer, make_user


def _parse(value):
    from datetime import datetime

    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


class TestPeriodEnd:
    def test_monthly_and_yearly(self, plans):
        start = utcnow()
        assert period_end_for(plans["BASICO"], "MONTHLY", start) == add_months(start, 1)
        assert period_end_for(plans["BASICO"], "YEARLY", start) == add_months(start, 12)

    def test_plan_duration_wins(self, plans):
        plan = plans["BASICO"]
        plan.duration_days = 30
        start = utcnow()
        assert period_end_for(plan, "YEARLY", start) == start + timedelta(days=30)


class TestCompanies:
    def test_list_with_usage(self, client, db_session, company, vendor, customer, superadmin_headers, expired_company):
        make_customer(db_session, company, name="Inactivo", is_active=False)

        response = client.get("/api/superadmin/companies", headers=superadmin_headers)
        assert response.status_code == 200
        rows = {c["id"]: c for c in response.json()}

        assert rows[company.id]["user_count"] == 1
        assert rows[company.id]["customer_count"] == 1
        assert rows[company.id]["plan_name"] == "PROFESIONAL"
        assert rows[company.id]["read_only"] is False
        assert rows[expired_company.id]["read_only"] is True

    def test_admin_is_forbidden(self, client, admin_headers):
        assert client.get("/api/superadmin/companies", headers=admin_headers).status_code == 403

    def test_deactivate_company(self, client, company, superadmin_headers):
        response = client.patch(
            f"/api/superadmin/companies/{company.id}",
            json={"is_active": False, "name": "Renombrada"},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renombrada"

    def test_unknown_company(self, client, superadmin_headers):
        assert client.get("/api/superadmin/companies/999", headers=superadmin_headers).status_code == 404


class TestSubscriptionUpsert:
    def _bare_company(self, db_session):
        company = Company(name="Sin Suscripción")
        db_session.add(company)
        db_session.commit()
        return company

    def test_create_requires_plan(self, client, db_session, plans, superadmin_headers):
        company = self._bare_company(db_session)
        response = client.patch(
            f"/api/superadmin/companies/{company.id}/subscription",
            json={"status": "ACTIVE"},
            headers=superadmin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == ErrorMessages.SUBSCRIPTION_PLAN_REQUIRED

    def test_create_defaults(self, client, db_session, plans, superadmin_headers):
        company = self._bare_company(db_session)
        response = client.patch(
            f"/api/superadmin/companies/{company.id}/subscription",
            json={"plan_id": plans["BASICO"].id},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "TRIAL"
        assert data["billing_period"] == "MONTHLY"
        assert data["plan"]["name"] == "BASICO"
        start, end = _parse(data["current_period_start"]), _parse(data["current_period_end"])
        assert end == add_months(start, 1)

    def test_plan_change_restarts_period(self, client, plans, expired_company, superadmin_headers):
        response = client.patch(
            f"/api/superadmin/companies/{expired_company.id}/subscription",
            json={"plan_id": plans["EMPRESARIAL"].id, "billing_period": "YEARLY"},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["read_only"] is False
        assert _parse(data["current_period_end"]) > utcnow() + timedelta(days=360)

    def test_status_only_keeps_period(self, client, db_session, company, superadmin_headers):
        before = as_utc(company.subscription.current_period_end)
        response = client.patch(
            f"/api/superadmin/companies/{company.id}/subscription",
            json={"status": "PAST_DUE"},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert abs(_parse(response.json()["current_period_end"]) - before) < timedelta(seconds=1)

    def test_explicit_end_wins(self, client, plans, company, superadmin_headers):
        end = (utcnow() + timedelta(days=3)).replace(microsecond=0)
        response = client.patch(
            f"/api/superadmin/companies/{company.id}/subscription",
            json={"plan_id": plans["BASICO"].id, "current_period_end": end.isoformat()},
            headers=superadmin_headers,
        )
        assert _parse(response.json()["current_period_end"]) == end

    def test_unknown_plan(self, client, company, superadmin_headers):
        response = client.patch(
            f"/api/superadmin/companies/{company.id}/subscription",
            json={"plan_id": 999},
            headers=superadmin_headers,
        )
        assert response.status_code == 404


class TestPlans:
    def test_list_sorted_by_price(self, client, plans, superadmin_headers):
        names = [p["name"] for p in client.get("/api/superadmin/plans", headers=superadmin_headers).json()]
        assert names == ["BASICO", "PROFESIONAL", "EMPRESARIAL"]

    def test_create_uppercases_name(self, client, plans, superadmin_headers):
        response = client.post(
            "/api/superadmin/plans",
            json={"name": " piloto ", "display_name": "Piloto", "price": 0, "duration_days": 30},
            headers=superadmin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "PILOTO"
        assert data["max_customers"] == -1

    def test_duplicate_name(self, client, plans, superadmin_headers):
        response = client.post(
            "/api/superadmin/plans",
            json={"name": "basico", "display_name": "Otro", "price": 1},
            headers=superadmin_headers,
        )
        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.PLAN_NAME_EXISTS

    def test_update_skips_null_price(self, client, plans, superadmin_headers):
        plan = plans["BASICO"]
        response = client.patch(
            f"/api/superadmin/plans/{plan.id}",
            json={"price": None, "max_vendors": 5, "description": None},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["price"] == 79000
        assert data["max_vendors"] == 5
        assert data["description"] is None

    def test_vendor_forbidden(self, client, db_session, company, plans):
        from tests.conftest import headers_for

        vendor = make_user(db_session, company, Roles.VENDOR, "v2@test.co")
        assert client.get("/api/superadmin/plans", headers=headers_for(vendor)).status_code == 403
