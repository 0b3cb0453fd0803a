"""
Tests for the subscription read-only rule and the write-guard on endpoints.
"""

from datetime import datetime, timedelta, timezone

from rest_api.models import Subscription
from rest_api.services.subscription_guard import get_subscription_status, is_read_only
from shared.config.constants import ErrorMessages, Roles
from tests.conftest import headers_for, make_customer, make_user

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _subscription(status="ACTIVE", end_in_days=10, trial_ends_in_days=None):
    return Subscription(
        status=status,
        billing_period="MONTHLY",
        current_period_start=NOW - timedelta(days=20),
        current_period_end=NOW + timedelta(days=end_in_days),
        trial_ends_at=NOW + timedelta(days=trial_ends_in_days) if trial_ends_in_days is not None else None,
    )


class TestIsReadOnly:
    """Pure read-only derivation."""

    def test_no_subscription(self):
        assert is_read_only(None, NOW) is True

    def test_active_in_period(self):
        assert is_read_only(_subscription(), NOW) is False

    def test_period_ended(self):
        assert is_read_only(_subscription(end_in_days=-1), NOW) is True

    def test_trial_expired(self):
        assert is_read_only(_subscription(status="TRIAL", trial_ends_in_days=-1), NOW) is True

    def test_trial_running(self):
        assert is_read_only(_subscription(status="TRIAL", trial_ends_in_days=3), NOW) is False

    def test_trial_end_ignored_once_active(self):
        assert is_read_only(_subscription(status="ACTIVE", trial_ends_in_days=-30), NOW) is False

    def test_blocked_statuses(self):
        for status in ("PAST_DUE", "CANCELLED", "SUSPENDED"):
            assert is_read_only(_subscription(status=status), NOW) is True

    def test_naive_dates_from_sqlite(self):
        sub = _subscription(end_in_days=-1)
        sub.current_period_end = sub.current_period_end.replace(tzinfo=None)
        assert is_read_only(sub, NOW) is True


class TestSubscriptionStatus:
    def test_loads_plan(self, db_session, company):
        state = get_subscription_status(db_session, company.id)
        assert state.read_only is False
        assert state.plan.name == "PROFESIONAL"

    def test_company_without_subscription(self, db_session, company):
        db_session.delete(company.subscription)
        db_session.commit()
        state = get_subscription_status(db_session, company.id)
        assert state.subscription is None
        assert state.read_only is True


class TestExpiredCompany:
    """An expired tenant reads everything but cannot write."""

    def test_reads_still_allowed(self, client, db_session, expired_company):
        admin = make_user(db_session, expired_company, Roles.ADMIN, "admin@vencida.co")
        make_customer(db_session, expired_company)

        response = client.get("/api/customers", headers=headers_for(admin))
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_writes_rejected_with_fixed_message(self, client, db_session, expired_company):
        admin = make_user(db_session, expired_company, Roles.ADMIN, "admin@vencida.co")

        response = client.post(
            "/api/customers",
            json={"name": "Tienda Nueva", "lat": 4.6, "lng": -74.1},
            headers=headers_for(admin),
        )
        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.SUBSCRIPTION_EXPIRED

    def test_vendor_checkin_rejected(self, client, db_session, expired_company):
        vendor = make_user(db_session, expired_company, Roles.VENDOR, "v@vencida.co")
        customer = make_customer(db_session, expired_company, assigned_vendor_id=vendor.id)

        response = client.post(
            "/api/visits/checkin",
            json={"customer_id": customer.id},
            headers=headers_for(vendor),
        )
        assert response.status_code == 403

    def test_company_endpoint_reports_read_only(self, client, db_session, expired_company):
        admin = make_user(db_session, expired_company, Roles.ADMIN, "admin@vencida.co")

        response = client.get("/api/company", headers=headers_for(admin))
        assert response.status_code == 200
        assert response.json()["subscription"]["read_only"] is True

    def test_superadmin_not_gated(self, client, expired_company, superadmin_headers):
        response = client.patch(
            f"/api/superadmin/companies/{expired_company.id}",
            json={"weekly_visit_goal": 50},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert response.json()["weekly_visit_goal"] == 50
