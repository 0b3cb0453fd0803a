"""
Company Service.

The ADMIN's own company: fiscal data, weekly visit goal and the current
subscription with its plan.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Company, Subscription
from rest_api.services.subscription_guard import is_read_only
from shared.config.constants import ErrorMessages
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.security.auth import Principal
from shared.utils.dates import utcnow
from shared.utils.exceptions import NotFoundError
from shared.utils.schemas import CompanyOutput, PlanOutput, SubscriptionOutput

logger = get_logger(__name__)

COMPANY_FIELDS = (
    "name",
    "phone",
    "nit",
    "legal_name",
    "trade_name",
    "address",
    "city",
    "department",
    "postal_code",
    "email",
    "tax_regime",
    "economic_activity",
    "weekly_visit_goal",
)


def subscription_output(subscription: Subscription, now: datetime | None = None) -> SubscriptionOutput:
    return SubscriptionOutput(
        id=subscription.id,
        company_id=subscription.company_id,
        status=subscription.status,
        billing_period=subscription.billing_period,
        trial_ends_at=subscription.trial_ends_at,
        current_period_start=subscription.current_period_start,
        current_period_end=subscription.current_period_end,
        notes=subscription.notes,
        read_only=is_read_only(subscription, now or utcnow()),
        plan=PlanOutput.model_validate(subscription.plan),
    )


def company_output(company: Company, now: datetime | None = None) -> CompanyOutput:
    subscription = company.subscription
    return CompanyOutput(
        id=company.id,
        name=company.name,
        phone=company.phone,
        nit=company.nit,
        legal_name=company.legal_name,
        trade_name=company.trade_name,
        address=company.address,
        city=company.city,
        department=company.department,
        postal_code=company.postal_code,
        email=company.email,
        tax_regime=company.tax_regime,
        economic_activity=company.economic_activity,
        weekly_visit_goal=company.weekly_visit_goal,
        is_active=company.is_active,
        created_at=company.created_at,
        subscription=subscription_output(subscription, now) if subscription else None,
    )


def load_company(db: Session, company_id: int) -> Company:
    company = db.scalar(
        select(Company)
        .options(joinedload(Company.subscription).joinedload(Subscription.plan))
        .where(Company.id == company_id)
    )
    if company is None:
        raise NotFoundError(ErrorMessages.COMPANY_NOT_FOUND, company_id)
    return company


def apply_company_fields(company: Company, data: dict[str, Any]) -> None:
    """Copy the editable fields present in data onto the company."""
    for field in COMPANY_FIELDS:
        if field not in data:
            continue
        # name and weekly_visit_goal are NOT NULL; an explicit null leaves them as they are
        if data[field] is None and field in ("name", "weekly_visit_goal"):
            continue
        setattr(company, field, data[field])


class CompanyService:
    """Service for the caller's company."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, company_id: int) -> CompanyOutput:
        return company_output(load_company(self._db, company_id))

    def update(self, data: dict[str, Any], principal: Principal) -> CompanyOutput:
        company_id = principal.tenant_id()
        company = load_company(self._db, company_id)
        apply_company_fields(company, data)
        company.set_updated_by(principal.user_id, principal.email)
        safe_commit(self._db)

        logger.info("Company updated", company_id=company_id, fields=sorted(data.keys()))
        self._db.expire_all()
        return self.get(company_id)
