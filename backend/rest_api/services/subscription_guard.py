"""
Subscription write-guard.

A company whose subscription is missing, expired or blocked can still read
everything but every mutating endpoint answers 403 with a fixed message.

SUPER_ADMIN has no company and is never gated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Plan, Subscription
from shared.config.constants import Roles, SubscriptionStatus
from shared.config.logging import audit_access_denied
from shared.infrastructure.db import get_db
from shared.security.auth import Principal, roles_required
from shared.utils.dates import as_utc, utcnow
from shared.utils.exceptions import SubscriptionReadOnlyError


def is_read_only(subscription: Subscription | None, now: datetime) -> bool:
    """
    True when any of these holds:
    - no subscription
    - the current period ended
    - a TRIAL whose trial end date passed
    - status PAST_DUE, CANCELLED or SUSPENDED
    """
    if subscription is None:
        return True
    now = as_utc(now)
    if as_utc(subscription.current_period_end) < now:
        return True
    if (
        subscription.status == SubscriptionStatus.TRIAL
        and subscription.trial_ends_at is not None
        and as_utc(subscription.trial_ends_at) < now
    ):
        return True
    return subscription.status in SubscriptionStatus.BLOCKED


@dataclass
class SubscriptionState:
    subscription: Subscription | None
    plan: Plan | None
    read_only: bool


def get_subscription_status(
    db: Session, company_id: int, now: datetime | None = None
) -> SubscriptionState:
    """Load the company's subscription with its plan and derive read-only status."""
    subscription = db.scalar(
        select(Subscription)
        .options(joinedload(Subscription.plan))
        .where(Subscription.company_id == company_id)
    )
    return SubscriptionState(
        subscription=subscription,
        plan=subscription.plan if subscription else None,
        read_only=is_read_only(subscription, now or utcnow()),
    )


def ensure_writable(db: Session, company_id: int, user_id: int | None = None) -> SubscriptionState:
    """Raise 403 when the company is read-only; return the state otherwise."""
    state = get_subscription_status(db, company_id)
    if state.read_only:
        audit_access_denied(
            "READ_ONLY_SUBSCRIPTION",
            company_id=company_id,
            user_id=user_id,
            status=state.subscription.status if state.subscription else None,
        )
        raise SubscriptionReadOnlyError(company_id=company_id)
    return state


def write_roles(*allowed: str):
    """
    Role check followed by the write-guard, as one dependency.

    Usage:
        require_admin_write = write_roles(Roles.ADMIN)

        @router.patch("/orders/{order_id}")
        def update_order(principal: Principal = Depends(require_admin_write)):
            ...
    """
    check_role = roles_required(*allowed)

    def dependency(
        principal: Principal = Depends(check_role),
        db: Session = Depends(get_db),
    ) -> Principal:
        if principal.role != Roles.SUPER_ADMIN:
            ensure_writable(db, principal.tenant_id(), principal.user_id)
        return principal

    return dependency
