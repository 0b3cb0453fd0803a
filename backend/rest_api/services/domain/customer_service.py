"""
Customer Service.

Handles the distributor's points of sale:
- Listing ordered coldest first with derived temperature
- Creation with plan limit and vendor auto-assignment
- Vendor assignment (single and batch)
- Proximity search for the assignment map

Usage:
    from rest_api.services.domain import CustomerService

    service = CustomerService(db)
    customers = service.list_all(company_id)
    customer = service.create(data, principal)
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Customer, User, Visit
from rest_api.services.notifications import PushNotifier
from rest_api.services.plan_limits import enforce_customer_limit
from rest_api.services.recency import classify_days, days_since
from shared.config.constants import ErrorMessages, Limits, PushType, Roles
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.security.auth import Principal
from shared.utils.dates import utcnow
from shared.utils.exceptions import ForbiddenError, NotFoundError
from shared.utils.schemas import (
    CustomerDetail,
    CustomerOutput,
    NearbyCustomer,
    VendorRef,
    VisitSummary,
)

logger = get_logger(__name__)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * Limits.EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def customer_fields(customer: Customer, now: datetime) -> dict[str, Any]:
    days = days_since(customer.last_visit_at, now)
    vendor = customer.assigned_vendor
    return {
        "id": customer.id,
        "company_id": customer.company_id,
        "name": customer.name,
        "owner_name": customer.owner_name,
        "phone": customer.phone,
        "address": customer.address,
        "lat": customer.lat,
        "lng": customer.lng,
        "photo_url": customer.photo_url,
        "notes": customer.notes,
        "last_visit_at": customer.last_visit_at,
        "assigned_vendor_id": customer.assigned_vendor_id,
        "assigned_vendor": VendorRef(id=vendor.id, name=vendor.name) if vendor else None,
        "requires_invoice": customer.requires_invoice,
        "billing_id": customer.billing_id,
        "billing_id_type": customer.billing_id_type,
        "billing_legal_org": customer.billing_legal_org,
        "billing_tribute": customer.billing_tribute,
        "billing_municipality_id": customer.billing_municipality_id,
        "billing_email": customer.billing_email,
        "is_active": customer.is_active,
        "created_at": customer.created_at,
        "cold_status": classify_days(days),
        "days_since_visit": days,
    }


class CustomerService:
    """
    Service for customer management.

    Business rules:
    - Customers belong to a company; every query is tenant scoped
    - Only active customers are listed and counted against the plan
    - A VENDOR who registers a customer is assigned to it
    - Assignment targets must be active VENDORs of the same company
    """

    def __init__(self, db: Session, notifier: PushNotifier | None = None):
        self._db = db
        self._notifier = notifier

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_all(self, company_id: int, now: datetime | None = None) -> list[CustomerOutput]:
        """Active customers, never-visited and coldest first."""
        now = now or utcnow()
        customers = self._db.execute(
            select(Customer)
            .options(joinedload(Customer.assigned_vendor))
            .where(Customer.company_id == company_id, Customer.is_active.is_(True))
            .order_by(Customer.last_visit_at.asc().nulls_first(), Customer.id)
        ).scalars().all()
        return [CustomerOutput(**customer_fields(c, now)) for c in customers]

    def get_detail(self, customer_id: int, company_id: int) -> CustomerDetail:
        """Customer plus its latest visits, newest first."""
        customer = self._get_entity(customer_id, company_id)
        visits = self._db.execute(
            select(Visit)
            .options(joinedload(Visit.vendor))
            .where(Visit.customer_id == customer.id)
            .order_by(Visit.visited_at.desc(), Visit.id.desc())
            .limit(Limits.CUSTOMER_DETAIL_VISITS)
        ).scalars().all()

        return CustomerDetail(
            **customer_fields(customer, utcnow()),
            visits=[
                VisitSummary(
                    id=v.id,
                    vendor_id=v.vendor_id,
                    vendor_name=v.vendor.name if v.vendor else None,
                    visited_at=v.visited_at,
                    check_out_at=v.check_out_at,
                    result=v.result,
                    reason=v.reason,
                    order_amount=v.order_amount,
                    notes=v.notes,
                )
                for v in visits
            ],
        )

    def find_nearby(
        self,
        company_id: int,
        lat: float,
        lng: float,
        radius_km: float = Limits.DEFAULT_NEARBY_RADIUS_KM,
        only_unassigned: bool = False,
    ) -> list[NearbyCustomer]:
        """Active customers within radius_km of (lat, lng), closest first."""
        query = (
            select(Customer)
            .options(joinedload(Customer.assigned_vendor))
            .where(Customer.company_id == company_id, Customer.is_active.is_(True))
        )
        if only_unassigned:
            query = query.where(Customer.assigned_vendor_id.is_(None))

        now = utcnow()
        results = []
        for c in self._db.execute(query).scalars().all():
            distance = haversine_km(lat, lng, c.lat, c.lng)
            if distance > radius_km:
                continue
            results.append(
                NearbyCustomer(
                    id=c.id,
                    name=c.name,
                    address=c.address,
                    phone=c.phone,
                    lat=c.lat,
                    lng=c.lng,
                    assigned_vendor_id=c.assigned_vendor_id,
                    vendor_name=c.assigned_vendor.name if c.assigned_vendor else None,
                    last_visit_at=c.last_visit_at,
                    distance_km=round(distance, 3),
                    cold_status=classify_days(days_since(c.last_visit_at, now)),
                )
            )
        results.sort(key=lambda item: item.distance_km)
        return results

    # =========================================================================
    # Command Methods
    # =========================================================================

    def create(self, data: dict[str, Any], principal: Principal) -> CustomerOutput:
        """Create a customer after checking the plan's max_customers."""
        if principal.role not in (Roles.ADMIN, Roles.VENDOR):
            raise ForbiddenError("crear clientes", user_id=principal.user_id)

        company_id = principal.tenant_id()
        enforce_customer_limit(self._db, company_id)

        if principal.role == Roles.VENDOR:
            data["assigned_vendor_id"] = principal.user_id
        elif data.get("assigned_vendor_id") is not None:
            self._get_vendor(data["assigned_vendor_id"], company_id)

        if data.get("requires_invoice") is None:
            data.pop("requires_invoice", None)

        customer = Customer(company_id=company_id, **data)
        customer.set_created_by(principal.user_id, principal.email)
        self._db.add(customer)
        safe_commit(self._db)
        self._db.refresh(customer)

        logger.info(
            "Customer created",
            customer_id=customer.id,
            company_id=company_id,
            assigned_vendor_id=customer.assigned_vendor_id,
        )
        return CustomerOutput(**customer_fields(customer, utcnow()))

    def update(self, customer_id: int, data: dict[str, Any], principal: Principal) -> CustomerOutput:
        """Apply a partial update; only fields present in the request are written."""
        customer = self._get_entity(customer_id, principal.tenant_id())

        for key, value in data.items():
            # NOT NULL columns ignore an explicit null
            if value is None and key in ("name", "lat", "lng", "requires_invoice"):
                continue
            setattr(customer, key, value)
        customer.set_updated_by(principal.user_id, principal.email)

        safe_commit(self._db)
        self._db.refresh(customer)
        return CustomerOutput(**customer_fields(customer, utcnow()))

    def delete(self, customer_id: int, principal: Principal) -> None:
        """Soft delete; frees a slot in the plan's customer limit."""
        customer = self._get_entity(customer_id, principal.tenant_id())
        customer.soft_delete(principal.user_id, principal.email)
        safe_commit(self._db)
        logger.info("Customer deactivated", customer_id=customer_id, company_id=customer.company_id)

    def assign(self, customer_id: int, vendor_id: int | None, principal: Principal) -> CustomerOutput:
        """Assign a vendor, or unassign with None."""
        company_id = principal.tenant_id()
        customer = self._get_entity(customer_id, company_id)
        if vendor_id is not None:
            self._get_vendor(vendor_id, company_id)

        customer.assigned_vendor_id = vendor_id
        customer.set_updated_by(principal.user_id, principal.email)
        safe_commit(self._db)
        self._db.refresh(customer)
        return CustomerOutput(**customer_fields(customer, utcnow()))

    def batch_assign(self, customer_ids: list[int], vendor_id: int, principal: Principal) -> int:
        """
        Assign one vendor to many customers and notify the vendor.

        Unknown or inactive ids are ignored; 404 when none is valid.
        """
        company_id = principal.tenant_id()
        vendor = self._get_vendor(vendor_id, company_id)

        customers = self._db.execute(
            select(Customer).where(
                Customer.id.in_(customer_ids),
                Customer.company_id == company_id,
                Customer.is_active.is_(True),
            )
        ).scalars().all()
        if not customers:
            raise NotFoundError(ErrorMessages.NO_VALID_CUSTOMERS, company_id=company_id)

        for customer in customers:
            customer.assigned_vendor_id = vendor.id
            customer.set_updated_by(principal.user_id, principal.email)
        safe_commit(self._db)

        updated = len(customers)
        if self._notifier is not None:
            self._notifier.notify(
                vendor.push_token,
                "Nuevos clientes asignados",
                f"Se te asignaron {updated} cliente(s).",
                {"type": PushType.CUSTOMERS_ASSIGNED, "count": updated},
            )
        logger.info("Customers batch assigned", vendor_id=vendor.id, count=updated)
        return updated

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _get_entity(self, customer_id: int, company_id: int) -> Customer:
        customer = self._db.scalar(
            select(Customer)
            .options(joinedload(Customer.assigned_vendor))
            .where(
                Customer.id == customer_id,
                Customer.company_id == company_id,
                Customer.is_active.is_(True),
            )
        )
        if customer is None:
            raise NotFoundError(ErrorMessages.CUSTOMER_NOT_FOUND, customer_id, company_id=company_id)
        return customer

    def _get_vendor(self, vendor_id: int, company_id: int) -> User:
        vendor = self._db.scalar(
            select(User).where(
                User.id == vendor_id,
                User.company_id == company_id,
                User.role == Roles.VENDOR,
                User.is_active.is_(True),
            )
        )
        if vendor is None:
            raise NotFoundError(ErrorMessages.VENDOR_NOT_FOUND, vendor_id, company_id=company_id)
        return vendor
