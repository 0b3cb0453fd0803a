"""
Superadmin Service.

Platform operator tools: every company with its usage counts, subscription
upserts and the plan catalog. None of these are tenant-scoped and none go
through the subscription write-guard.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Company, Customer, Plan, Subscription, User
from rest_api.services.domain.company_service import (
    apply_company_fields,
    company_output,
    load_company,
    subscription_output,
)
from rest_api.services.subscription_guard import is_read_only
from shared.config.constants import BillingPeriod, ErrorMessages, SubscriptionStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.security.auth import Principal
from shared.utils.dates import add_months, as_utc, utcnow
from shared.utils.exceptions import ConflictError, NotFoundError, ValidationError
from shared.utils.schemas import CompanyOutput, CompanySummary, PlanOutput, SubscriptionOutput

logger = get_logger(__name__)

PLAN_FIELDS = (
    "display_name",
    "description",
    "price",
    "max_vendors",
    "max_customers",
    "max_delivery",
    "dian_enabled",
    "reports_enabled",
    "api_access",
    "history_days",
    "duration_days",
    "active",
)


def period_end_for(plan: Plan, billing_period: str | None, start: datetime) -> datetime:
    """
    End of a subscription period starting at `start`.

    A plan with duration_days fixes the length; otherwise YEARLY adds a year
    and anything else one calendar month.
    """
    if plan.duration_days:
        return start + timedelta(days=plan.duration_days)
    if billing_period == BillingPeriod.YEARLY:
        return add_months(start, 12)
    return add_months(start, 1)


class SuperadminService:
    """
    Service for the SUPER_ADMIN console.

    Business rules:
    - A subscription is created the first time a plan is given for a company
    - Without an explicit current_period_end, changing the plan or billing
      period starts a new period from now
    - Plan names are unique
    """

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Companies
    # =========================================================================

    def list_companies(self, now: datetime | None = None) -> list[CompanySummary]:
        now = now or utcnow()
        user_counts = (
            select(User.company_id, func.count(User.id).label("n"))
            .where(User.company_id.is_not(None))
            .group_by(User.company_id)
            .subquery()
        )
        customer_counts = (
            select(Customer.company_id, func.count(Customer.id).label("n"))
            .where(Customer.is_active.is_(True))
            .group_by(Customer.company_id)
            .subquery()
        )
        rows = self._db.execute(
            select(
                Company,
                func.coalesce(user_counts.c.n, 0),
                func.coalesce(customer_counts.c.n, 0),
            )
            .options(joinedload(Company.subscription).joinedload(Subscription.plan))
            .outerjoin(user_counts, user_counts.c.company_id == Company.id)
            .outerjoin(customer_counts, customer_counts.c.company_id == Company.id)
            .order_by(Company.created_at.desc(), Company.id.desc())
        ).unique().all()

        result = []
        for company, user_count, customer_count in rows:
            subscription = company.subscription
            result.append(
                CompanySummary(
                    id=company.id,
                    name=company.name,
                    is_active=company.is_active,
                    created_at=company.created_at,
                    user_count=user_count,
                    customer_count=customer_count,
                    plan_name=subscription.plan.name if subscription else None,
                    subscription_status=subscription.status if subscription else None,
                    current_period_end=subscription.current_period_end if subscription else None,
                    read_only=is_read_only(subscription, now),
                )
            )
        return result

    def get_company(self, company_id: int) -> CompanyOutput:
        return company_output(load_company(self._db, company_id))

    def update_company(self, company_id: int, data: dict[str, Any], principal: Principal) -> CompanyOutput:
        company = load_company(self._db, company_id)
        apply_company_fields(company, data)
        if data.get("is_active") is not None:
            if data["is_active"]:
                company.restore(principal.user_id, principal.email)
            else:
                company.soft_delete(principal.user_id, principal.email)
        company.set_updated_by(principal.user_id, principal.email)
        safe_commit(self._db)

        logger.info("Company updated by superadmin", company_id=company_id, fields=sorted(data.keys()))
        self._db.expire_all()
        return self.get_company(company_id)

    def upsert_subscription(
        self,
        company_id: int,
        data: dict[str, Any],
        principal: Principal,
    ) -> SubscriptionOutput:
        """
        Create or update the company's subscription.

        Raises:
            NotFoundError: Unknown company or plan.
            ValidationError: Creating a subscription without a plan.
        """
        company = load_company(self._db, company_id)
        now = utcnow()

        plan = None
        if data.get("plan_id") is not None:
            plan = self._get_plan(data["plan_id"])

        subscription = company.subscription
        explicit_end = as_utc(data.get("current_period_end"))

        if subscription is None:
            if plan is None:
                raise ValidationError(ErrorMessages.SUBSCRIPTION_PLAN_REQUIRED, company_id=company_id)
            billing_period = data.get("billing_period") or BillingPeriod.MONTHLY
            subscription = Subscription(
                company_id=company.id,
                plan_id=plan.id,
                status=data.get("status") or SubscriptionStatus.TRIAL,
                billing_period=billing_period,
                trial_ends_at=as_utc(data.get("trial_ends_at")),
                current_period_start=now,
                current_period_end=explicit_end or period_end_for(plan, billing_period, now),
                notes=data.get("notes"),
            )
            subscription.plan = plan
            subscription.set_created_by(principal.user_id, principal.email)
            self._db.add(subscription)
        else:
            renews = plan is not None or data.get("billing_period") is not None
            if plan is not None:
                subscription.plan = plan
            if data.get("billing_period") is not None:
                subscription.billing_period = data["billing_period"]
            if data.get("status") is not None:
                subscription.status = data["status"]
            if "trial_ends_at" in data:
                subscription.trial_ends_at = as_utc(data["trial_ends_at"])
            if "notes" in data:
                subscription.notes = data["notes"]

            if explicit_end is not None:
                subscription.current_period_end = explicit_end
            elif renews:
                subscription.current_period_start = now
                subscription.current_period_end = period_end_for(
                    subscription.plan, subscription.billing_period, now
                )
            subscription.set_updated_by(principal.user_id, principal.email)

        safe_commit(self._db)
        self._db.refresh(subscription)

        logger.info(
            "Subscription upserted",
            company_id=company_id,
            plan_id=subscription.plan_id,
            status=subscription.status,
            current_period_end=subscription.current_period_end.isoformat(),
        )
        return subscription_output(subscription)

    # =========================================================================
    # Plans
    # =========================================================================

    def list_plans(self) -> list[PlanOutput]:
        plans = self._db.execute(
            select(Plan).where(Plan.is_active.is_(True)).order_by(Plan.price.asc(), Plan.id.asc())
        ).scalars().all()
        return [PlanOutput.model_validate(p) for p in plans]

    def create_plan(self, data: dict[str, Any], principal: Principal) -> PlanOutput:
        name = data["name"].strip().upper()
        if self._db.scalar(select(Plan.id).where(Plan.name == name)) is not None:
            raise ConflictError(ErrorMessages.PLAN_NAME_EXISTS, name=name)

        plan = Plan(**{**data, "name": name})
        plan.set_created_by(principal.user_id, principal.email)
        self._db.add(plan)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise ConflictError(ErrorMessages.PLAN_NAME_EXISTS, name=name)
        self._db.refresh(plan)

        logger.info("Plan created", plan_id=plan.id, name=plan.name)
        return PlanOutput.model_validate(plan)

    def update_plan(self, plan_id: int, data: dict[str, Any], principal: Principal) -> PlanOutput:
        plan = self._get_plan(plan_id)
        for field in PLAN_FIELDS:
            if field not in data:
                continue
            # Only description and duration_days accept null
            if data[field] is None and field not in ("description", "duration_days"):
                continue
            setattr(plan, field, data[field])
        plan.set_updated_by(principal.user_id, principal.email)
        safe_commit(self._db)
        self._db.refresh(plan)

        logger.info("Plan updated", plan_id=plan.id, fields=sorted(data.keys()))
        return PlanOutput.model_validate(plan)

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _get_plan(self, plan_id: int) -> Plan:
        plan = self._db.get(Plan, plan_id)
        if plan is None or not plan.is_active:
            raise NotFoundError(ErrorMessages.PLAN_NOT_FOUND, plan_id)
        return plan
