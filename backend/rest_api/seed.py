"""
Seed data.

seed_plans() runs on every startup and is idempotent: the three commercial
plans are inserted only when the plan table is empty. seed_demo() adds a
pilot company with one user per role for local development.
"""

from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Company, Plan, Subscription, User
from shared.config.constants import BillingPeriod, Roles, SubscriptionStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.security.password import hash_password
from shared.utils.dates import add_months, utcnow

logger = get_logger(__name__)


# Prices in COP per month; -1 means unlimited, history_days 0 means unlimited
DEFAULT_PLANS = [
    {
        "name": "BASICO",
        "display_name": "Básico",
        "description": "Para distribuidoras pequeñas. Hasta 3 vendedores y 200 clientes.",
        "price": 79000,
        "max_vendors": 3,
        "max_customers": 200,
        "max_delivery": 2,
        "dian_enabled": False,
        "reports_enabled": False,
        "api_access": False,
        "history_days": 90,
    },
    {
        "name": "PROFESIONAL",
        "display_name": "Profesional",
        "description": "El más popular. Facturación DIAN y reportes avanzados incluidos.",
        "price": 199000,
        "max_vendors": 10,
        "max_customers": 1000,
        "max_delivery": 5,
        "dian_enabled": True,
        "reports_enabled": True,
        "api_access": False,
        "history_days": 365,
    },
    {
        "name": "EMPRESARIAL",
        "display_name": "Empresarial",
        "description": "Sin límites. Todo incluido con API y soporte prioritario.",
        "price": 499000,
        "max_vendors": -1,
        "max_customers": -1,
        "max_delivery": -1,
        "dian_enabled": True,
        "reports_enabled": True,
        "api_access": True,
        "history_days": 0,
    },
]

DEMO_PASSWORD = "123456"


def seed_plans(db: Session) -> int:
    """Insert the default plans when none exist. Returns how many were created."""
    if db.scalar(select(Plan.id).limit(1)) is not None:
        logger.info("Plans already seeded, skipping")
        return 0

    for plan_data in DEFAULT_PLANS:
        db.add(Plan(**plan_data))
    db.commit()
    logger.info("Plans seeded", count=len(DEFAULT_PLANS))
    return len(DEFAULT_PLANS)


def seed_demo(db: Session) -> None:
    """
    Pilot company on an ACTIVE PROFESIONAL subscription plus a SUPER_ADMIN,
    an ADMIN, a VENDOR and a DELIVERY user. Skipped when the superadmin exists.
    """
    if db.scalar(select(User.id).where(User.email == "superadmin@distriapp.co")) is not None:
        logger.info("Demo data already seeded, skipping")
        return

    plan = db.scalar(select(Plan).where(Plan.name == "PROFESIONAL"))
    if plan is None:
        logger.warning("PROFESIONAL plan missing, demo data not seeded")
        return

    now = utcnow()
    company = Company(
        name="Distribuidora El Progreso",
        phone="310 500 1234",
        nit="900.123.456-7",
        legal_name="Distribuidora El Progreso S.A.S.",
        trade_name="El Progreso",
        address="Cra 7 #45-10, Chapinero",
        city="Bogotá",
        department="Cundinamarca",
        postal_code="110231",
        email="contacto@progreso.co",
        tax_regime="Responsable de IVA",
        weekly_visit_goal=40,
    )
    db.add(company)
    db.flush()

    db.add(
        Subscription(
            company_id=company.id,
            plan_id=plan.id,
            status=SubscriptionStatus.ACTIVE,
            billing_period=BillingPeriod.MONTHLY,
            current_period_start=now,
            current_period_end=add_months(now, 1),
            trial_ends_at=now + timedelta(days=14),
            notes="Empresa de demostración creada por seed",
        )
    )

    password = hash_password(DEMO_PASSWORD)
    users = [
        (None, "Super Admin", "superadmin@distriapp.co", Roles.SUPER_ADMIN),
        (company.id, "Carlos Mendoza", "admin@progreso.co", Roles.ADMIN),
        (company.id, "Andrés Rojas", "vendedor@progreso.co", Roles.VENDOR),
        (company.id, "Luis Gómez", "repartidor@progreso.co", Roles.DELIVERY),
    ]
    for company_id, name, email, role in users:
        db.add(User(company_id=company_id, name=name, email=email, password=password, role=role))

    db.commit()
    logger.info("Demo data seeded", company_id=company.id, users=len(users))


def seed(db: Session) -> None:
    """Startup seed: plans always, demo data only when enabled."""
    seed_plans(db)
    if settings.seed_demo_data:
        seed_demo(db)
