"""
Tests for login, session cookie and self-service registration.
"""

from datetime import timedelta

from sqlalchemy import select

from rest_api.models import Subscription, User
from shared.config.constants import ErrorMessages, Limits, SubscriptionStatus
from shared.config.settings import settings
from shared.utils.dates import as_utc, utcnow
from tests.conftest import PASSWORD


class TestMobileLogin:
    def test_vendor_gets_token(self, client, vendor):
        response = client.post("/api/auth/login", json={"email": "VENDEDOR@test.co", "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "Bearer"
        assert data["expires_in"] == settings.jwt_access_token_expire_days * 24 * 60 * 60
        assert data["user"]["role"] == "VENDOR"
        assert data["user"]["company_name"] == "Distribuidora Test"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.json()["user_id"] == vendor.id

    def test_admin_rejected_before_password(self, client, admin):
        response = client.post("/api/auth/login", json={"email": "admin@test.co", "password": "incorrecta"})
        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.ACCESS_NOT_ALLOWED

    def test_wrong_password(self, client, delivery_user):
        response = client.post("/api/auth/login", json={"email": "repartidor@test.co", "password": "incorrecta"})
        assert response.status_code == 401
        assert response.json()["detail"] == ErrorMessages.INVALID_CREDENTIALS

    def test_unknown_email(self, client, db_session):
        response = client.post("/api/auth/login", json={"email": "nadie@test.co", "password": PASSWORD})
        assert response.status_code == 401


class TestWebLogin:
    def test_sets_session_cookie(self, client, admin):
        response = client.post("/api/auth/web-login", json={"email": "admin@test.co", "password": PASSWORD})
        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert settings.session_cookie_name in set_cookie
        assert "HttpOnly" in set_cookie

        # The cookie alone authenticates the dashboard
        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["role"] == "ADMIN"

    def test_superadmin_allowed(self, client, superadmin):
        response = client.post("/api/auth/web-login", json={"email": "root@distriapp.co", "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["user"]["company_id"] is None

    def test_field_user_rejected(self, client, vendor):
        response = client.post("/api/auth/web-login", json={"email": "vendedor@test.co", "password": PASSWORD})
        assert response.status_code == 403

    def test_logout_clears_cookie(self, client, admin):
        client.post("/api/auth/web-login", json={"email": "admin@test.co", "password": PASSWORD})
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert client.get("/api/auth/me").status_code == 401


def test_invalid_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer no-es-un-jwt"})
    assert response.status_code == 401


class TestRegister:
    payload = {
        "company_name": "Distribuciones El Sol",
        "admin_name": "Sofía Sol",
        "email": "Sofia@ElSol.co",
        "password": "clave123",
        "phone": "3105551234",
    }

    def test_creates_company_admin_and_trial(self, client, db_session, plans):
        response = client.post("/api/auth/register", json=self.payload)
        assert response.status_code == 201
        data = response.json()
        assert data["trial_days"] == Limits.TRIAL_DAYS
        assert data["email"] == "sofia@elsol.co"

        user = db_session.get(User, data["user_id"])
        assert user.role == "ADMIN"
        assert user.company_id == data["company_id"]

        subscription = db_session.scalar(
            select(Subscription).where(Subscription.company_id == data["company_id"])
        )
        assert subscription.status == SubscriptionStatus.TRIAL
        assert subscription.plan.name == "PROFESIONAL"
        expected = utcnow() + timedelta(days=Limits.TRIAL_DAYS)
        assert abs(as_utc(subscription.trial_ends_at) - expected) < timedelta(minutes=1)

    def test_new_admin_can_log_in(self, client, plans):
        client.post("/api/auth/register", json=self.payload)
        response = client.post(
            "/api/auth/web-login",
            json={"email": "sofia@elsol.co", "password": "clave123"},
        )
        assert response.status_code == 200

    def test_duplicate_email(self, client, plans, admin):
        response = client.post("/api/auth/register", json={**self.payload, "email": "ADMIN@test.co"})
        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.ACCOUNT_EMAIL_EXISTS

    def test_no_plans_configured(self, client, db_session):
        response = client.post("/api/auth/register", json=self.payload)
        assert response.status_code == 503
        assert response.json()["detail"] == ErrorMessages.NO_PLANS_CONFIGURED

    def test_short_password(self, client, plans):
        response = client.post("/api/auth/register", json={**self.payload, "password": "123"})
        assert response.status_code == 400
