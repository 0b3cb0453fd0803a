"""
Pytest configuration and fixtures for backend tests.

The app engine points at a throwaway SQLite file (used only by the lifespan
seed and the health check); every request goes through the in-memory session
below via the get_db override.
"""

import os
import tempfile
from datetime import timedelta

os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.gettempdir(), 'distriapp-test.db')}",
)
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.models import Base, Company, Customer, Plan, Subscription, User
from rest_api.seed import seed_plans
from rest_api.services.location import LocationBroadcaster, get_location_broadcaster
from rest_api.services.notifications import get_push_client
from shared.config.constants import BillingPeriod, Roles, SubscriptionStatus
from shared.infrastructure.db import get_db
from shared.security.auth import sign_user_token
from shared.security.password import hash_password
from shared.security.rate_limit import limiter
from shared.utils.dates import add_months, utcnow


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


class FakePushClient:
    """Records messages instead of calling Expo."""

    def __init__(self):
        self.sent = []

    async def send(self, message) -> bool:
        self.sent.append(message)
        return True

    async def close(self) -> None:
        pass


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory database per test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def push_client():
    return FakePushClient()


@pytest.fixture
def broadcaster():
    return LocationBroadcaster(use_redis=False)


@pytest.fixture(scope="function")
def client(db_session, push_client, broadcaster):
    """Test client with database, push and broadcaster overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_client] = lambda: push_client
    app.dependency_overrides[get_location_broadcaster] = lambda: broadcaster
    limiter.enabled = False

    with TestClient(app) as test_client:
        yield test_client

    limiter.enabled = True
    app.dependency_overrides.clear()


# =============================================================================
# Tenant fixtures
# =============================================================================


@pytest.fixture
def plans(db_session):
    """The three default plans, by name."""
    seed_plans(db_session)
    return {p.name: p for p in db_session.execute(select(Plan)).scalars()}


def make_company(db_session, plan, status=SubscriptionStatus.ACTIVE, name="Distribuidora Test", **sub_fields):
    now = utcnow()
    company = Company(name=name, weekly_visit_goal=20)
    db_session.add(company)
    db_session.flush()
    subscription = Subscription(
        company_id=company.id,
        plan_id=plan.id,
        status=status,
        billing_period=BillingPeriod.MONTHLY,
        current_period_start=sub_fields.pop("current_period_start", now),
        current_period_end=sub_fields.pop("current_period_end", add_months(now, 1)),
        **sub_fields,
    )
    db_session.add(subscription)
    db_session.commit()
    db_session.refresh(company)
    return company


def make_user(db_session, company, role, email, name=None, **fields):
    user = User(
        company_id=company.id if company else None,
        name=name or email.split("@")[0].title(),
        email=email,
        password=hash_password(PASSWORD),
        role=role,
        **fields,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_customer(db_session, company, name="Tienda Doña Rosa", lat=4.65, lng=-74.05, **fields):
    customer = Customer(company_id=company.id, name=name, lat=lat, lng=lng, **fields)
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


def headers_for(user):
    token = sign_user_token(user.id, user.company_id, user.role, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def company(db_session, plans):
    """Company on an ACTIVE PROFESIONAL subscription."""
    return make_company(db_session, plans["PROFESIONAL"])


@pytest.fixture
def admin(db_session, company):
    return make_user(db_session, company, Roles.ADMIN, "admin@test.co", name="Ana Admin")


@pytest.fixture
def vendor(db_session, company):
    return make_user(db_session, company, Roles.VENDOR, "vendedor@test.co", name="Victor Vendedor")


@pytest.fixture
def delivery_user(db_session, company):
    return make_user(db_session, company, Roles.DELIVERY, "repartidor@test.co", name="Diana Repartidora")


@pytest.fixture
def superadmin(db_session, plans):
    return make_user(db_session, None, Roles.SUPER_ADMIN, "root@distriapp.co", name="Root")


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def vendor_headers(vendor):
    return headers_for(vendor)


@pytest.fixture
def delivery_headers(delivery_user):
    return headers_for(delivery_user)


@pytest.fixture
def superadmin_headers(superadmin):
    return headers_for(superadmin)


@pytest.fixture
def customer(db_session, company, vendor):
    return make_customer(db_session, company, assigned_vendor_id=vendor.id)


@pytest.fixture
def expired_company(db_session, plans):
    """Company whose period ended yesterday."""
    now = utcnow()
    return make_company(
        db_session,
        plans["BASICO"],
        name="Distribuidora Vencida",
        current_period_start=now - timedelta(days=31),
        current_period_end=now - timedelta(days=1),
    )
