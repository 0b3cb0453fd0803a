"""
Visit Service.

Field visit lifecycle for vendors:
- check-in opens a visit without result
- checkout records the result, warms the customer and may create an order
- legacy one-step visits from older app versions
- scheduled (planned) visits

Checkout runs in a single transaction: visit, customer, order and scheduled
visits are committed together or not at all.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Customer, Order, ScheduledVisit, Visit
from shared.config.constants import ErrorMessages, OrderStatus, Roles, VisitResult
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.security.auth import Principal
from shared.utils.dates import as_utc, utcnow
from shared.utils.exceptions import ForbiddenError, NotFoundError
from shared.utils.schemas import (
    CheckoutResponse,
    ScheduledVisitOutput,
    VisitOutput,
)

logger = get_logger(__name__)


def scheduled_visit_output(sv: ScheduledVisit) -> ScheduledVisitOutput:
    return ScheduledVisitOutput(
        id=sv.id,
        customer_id=sv.customer_id,
        customer_name=sv.customer.name if sv.customer else None,
        customer_address=sv.customer.address if sv.customer else None,
        vendor_id=sv.vendor_id,
        scheduled_for=sv.scheduled_for,
        notes=sv.notes,
        completed=sv.completed,
        visit_id=sv.visit_id,
    )


class VisitService:
    """
    Service for vendor visits.

    Business rules:
    - Only the visit's own vendor can check it out
    - A checkout with ORDER_TAKEN and an amount creates one order per visit,
      in PENDING_REVIEW until an admin approves it
    - Due scheduled visits of the same customer and vendor are closed and
      linked to the checkout
    """

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Check-in / checkout
    # =========================================================================

    def check_in(
        self,
        customer_id: int,
        principal: Principal,
        lat: float | None = None,
        lng: float | None = None,
    ) -> VisitOutput:
        self._require_vendor(principal)
        customer = self._get_customer(customer_id, principal.tenant_id())

        now = utcnow()
        visit = Visit(
            customer_id=customer.id,
            vendor_id=principal.user_id,
            visited_at=now,
            check_in_at=now,
            lat=lat,
            lng=lng,
        )
        visit.set_created_by(principal.user_id, principal.email)
        self._db.add(visit)
        safe_commit(self._db)
        self._db.refresh(visit)

        logger.info("Visit check-in", visit_id=visit.id, customer_id=customer.id, vendor_id=principal.user_id)
        return VisitOutput.model_validate(visit)

    def check_out(
        self,
        visit_id: int,
        principal: Principal,
        *,
        result: str,
        reason: str | None = None,
        order_amount: int | None = None,
        notes: str | None = None,
        delivery_date: datetime | None = None,
        scheduled_for: datetime | None = None,
    ) -> CheckoutResponse:
        """Complete a visit. Everything below is committed in one transaction."""
        self._require_vendor(principal)
        company_id = principal.tenant_id()

        visit = self._db.scalar(
            select(Visit)
            .join(Customer, Customer.id == Visit.customer_id)
            .where(
                Visit.id == visit_id,
                Visit.vendor_id == principal.user_id,
                Customer.company_id == company_id,
            )
        )
        if visit is None:
            raise NotFoundError(ErrorMessages.VISIT_NOT_FOUND, visit_id, vendor_id=principal.user_id)

        now = utcnow()
        try:
            visit.result = result
            visit.reason = reason
            visit.order_amount = order_amount
            visit.notes = notes
            visit.check_out_at = now
            visit.set_updated_by(principal.user_id, principal.email)

            customer = self._db.get(Customer, visit.customer_id)
            customer.last_visit_at = now

            order_id = None
            if result == VisitResult.ORDER_TAKEN and order_amount:
                existing = self._db.scalar(select(Order).where(Order.visit_id == visit.id))
                if existing is None:
                    order = Order(
                        company_id=company_id,
                        customer_id=visit.customer_id,
                        visit_id=visit.id,
                        amount=order_amount,
                        status=OrderStatus.PENDING_REVIEW,
                        delivery_date=as_utc(delivery_date),
                    )
                    order.set_created_by(principal.user_id, principal.email)
                    self._db.add(order)
                    self._db.flush()
                    order_id = order.id
                else:
                    order_id = existing.id

            scheduled_id = None
            if scheduled_for is not None:
                scheduled = ScheduledVisit(
                    customer_id=visit.customer_id,
                    vendor_id=principal.user_id,
                    scheduled_for=as_utc(scheduled_for),
                )
                scheduled.set_created_by(principal.user_id, principal.email)
                self._db.add(scheduled)
                self._db.flush()
                scheduled_id = scheduled.id

            self._db.execute(
                update(ScheduledVisit)
                .where(
                    ScheduledVisit.vendor_id == principal.user_id,
                    ScheduledVisit.customer_id == visit.customer_id,
                    ScheduledVisit.completed.is_(False),
                    ScheduledVisit.visit_id.is_(None),
                    ScheduledVisit.scheduled_for <= now,
                )
                .values(completed=True, visit_id=visit.id)
                .execution_options(synchronize_session=False)
            )

            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(visit)
        logger.info(
            "Visit checkout",
            visit_id=visit.id,
            result=result,
            order_id=order_id,
            scheduled_visit_id=scheduled_id,
        )
        return CheckoutResponse(
            visit=VisitOutput.model_validate(visit),
            order_id=order_id,
            scheduled_visit_id=scheduled_id,
        )

    def register_completed(
        self,
        principal: Principal,
        *,
        customer_id: int,
        result: str,
        reason: str | None = None,
        order_amount: int | None = None,
        notes: str | None = None,
        lat: float | None = None,
        lng: float | None = None,
    ) -> VisitOutput:
        """
        One-step visit used by older app versions.

        The order, when taken, goes straight to PENDING.
        """
        if principal.role == Roles.DELIVERY:
            raise ForbiddenError("registrar visitas", user_id=principal.user_id)
        company_id = principal.tenant_id()
        customer = self._get_customer(customer_id, company_id)

        now = utcnow()
        try:
            visit = Visit(
                customer_id=customer.id,
                vendor_id=principal.user_id,
                visited_at=now,
                check_out_at=now,
                result=result,
                reason=reason,
                order_amount=order_amount,
                notes=notes,
                lat=lat,
                lng=lng,
            )
            visit.set_created_by(principal.user_id, principal.email)
            self._db.add(visit)
            self._db.flush()

            customer.last_visit_at = now

            if result == VisitResult.ORDER_TAKEN and order_amount:
                order = Order(
                    company_id=company_id,
                    customer_id=customer.id,
                    visit_id=visit.id,
                    amount=order_amount,
                    status=OrderStatus.PENDING,
                )
                order.set_created_by(principal.user_id, principal.email)
                self._db.add(order)

            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(visit)
        logger.info("Visit registered", visit_id=visit.id, customer_id=customer.id, result=result)
        return VisitOutput.model_validate(visit)

    # =========================================================================
    # Scheduled visits
    # =========================================================================

    def list_scheduled(self, principal: Principal) -> list[ScheduledVisitOutput]:
        """The vendor's pending scheduled visits, soonest first."""
        self._require_vendor(principal)
        rows = self._db.execute(
            select(ScheduledVisit)
            .options(joinedload(ScheduledVisit.customer))
            .join(Customer, Customer.id == ScheduledVisit.customer_id)
            .where(
                ScheduledVisit.vendor_id == principal.user_id,
                ScheduledVisit.completed.is_(False),
                Customer.company_id == principal.tenant_id(),
            )
            .order_by(ScheduledVisit.scheduled_for.asc())
        ).scalars().all()
        return [scheduled_visit_output(sv) for sv in rows]

    def schedule(
        self,
        principal: Principal,
        customer_id: int,
        scheduled_for: datetime,
        notes: str | None = None,
    ) -> ScheduledVisitOutput:
        self._require_vendor(principal)
        customer = self._get_customer(customer_id, principal.tenant_id())

        sv = ScheduledVisit(
            customer_id=customer.id,
            vendor_id=principal.user_id,
            scheduled_for=as_utc(scheduled_for),
            notes=notes,
        )
        sv.set_created_by(principal.user_id, principal.email)
        self._db.add(sv)
        safe_commit(self._db)
        self._db.refresh(sv)

        logger.info("Visit scheduled", scheduled_visit_id=sv.id, customer_id=customer.id)
        return scheduled_visit_output(sv)

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _require_vendor(self, principal: Principal) -> None:
        if principal.role != Roles.VENDOR:
            raise ForbiddenError("gestionar visitas", user_id=principal.user_id, role=principal.role)

    def _get_customer(self, customer_id: int, company_id: int) -> Customer:
        customer = self._db.scalar(
            select(Customer).where(
                Customer.id == customer_id,
                Customer.company_id == company_id,
                Customer.is_active.is_(True),
            )
        )
        if customer is None:
            raise NotFoundError(ErrorMessages.CUSTOMER_NOT_FOUND, customer_id, company_id=company_id)
        return customer
