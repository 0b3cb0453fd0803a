"""
Plan limit enforcement for customers, vendors and delivery persons.

The caller must insert the new row in the same transaction after
enforce_*() returns: the subscription row stays locked (SELECT ... FOR UPDATE)
until commit, so two concurrent creations for one tenant cannot both pass
the count. SQLite ignores the lock clause.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rest_api.models import Customer, Subscription, User
from shared.config.constants import ErrorMessages, Limits, Roles
from shared.config.logging import get_logger
from shared.utils.exceptions import PlanLimitError, SubscriptionReadOnlyError

logger = get_logger(__name__)


def limit_reached(count: int, maximum: int) -> bool:
    """-1 means unlimited; otherwise the limit is reached at count >= maximum."""
    if maximum == Limits.UNLIMITED:
        return False
    return count >= maximum


def _lock_subscription(db: Session, company_id: int) -> Subscription:
    subscription = db.scalar(
        select(Subscription)
        .where(Subscription.company_id == company_id)
        .with_for_update()
    )
    if subscription is None:
        raise SubscriptionReadOnlyError(company_id=company_id)
    return subscription


def count_active_customers(db: Session, company_id: int) -> int:
    return db.scalar(
        select(func.count(Customer.id)).where(
            Customer.company_id == company_id,
            Customer.is_active.is_(True),
        )
    ) or 0


def count_active_users(db: Session, company_id: int, role: str) -> int:
    return db.scalar(
        select(func.count(User.id)).where(
            User.company_id == company_id,
            User.role == role,
            User.is_active.is_(True),
        )
    ) or 0


def enforce_customer_limit(db: Session, company_id: int) -> None:
    """Raise 403 when the company already has max_customers active customers."""
    plan = _lock_subscription(db, company_id).plan
    count = count_active_customers(db, company_id)
    if limit_reached(count, plan.max_customers):
        logger.info(
            "Plan customer limit reached",
            company_id=company_id,
            plan=plan.name,
            count=count,
        )
        raise PlanLimitError(ErrorMessages.PLAN_MAX_CUSTOMERS, plan.max_customers, company_id=company_id)


def enforce_user_limit(db: Session, company_id: int, role: str) -> None:
    """Raise 403 when adding another VENDOR/DELIVERY would exceed the plan."""
    if role == Roles.VENDOR:
        template = ErrorMessages.PLAN_MAX_VENDORS
        field = "max_vendors"
    elif role == Roles.DELIVERY:
        template = ErrorMessages.PLAN_MAX_DELIVERY
        field = "max_delivery"
    else:
        return

    plan = _lock_subscription(db, company_id).plan
    maximum = getattr(plan, field)
    count = count_active_users(db, company_id, role)
    if limit_reached(count, maximum):
        logger.info(
            "Plan user limit reached",
            company_id=company_id,
            plan=plan.name,
            role=role,
            count=count,
        )
        raise PlanLimitError(template, maximum, company_id=company_id, role=role)
