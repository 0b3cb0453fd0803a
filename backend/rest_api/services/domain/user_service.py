"""
User Service.

Team management for a company ADMIN (vendors and delivery persons) and the
field user's own device data: last location and Expo push token.

Usage:
    service = UserService(db)
    users = service.list_all(company_id, field_only=True)
    user = service.create(data, principal)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import Customer, User
from rest_api.services.notifications import PushNotifier
from rest_api.services.plan_limits import enforce_user_limit
from shared.config.constants import FIELD_ROLES, ErrorMessages, PushType, Roles
from shared.config.logging import get_logger, mask_email
from shared.infrastructure.db import safe_commit
from shared.security.auth import Principal
from shared.security.password import hash_password
from shared.utils.dates import utcnow
from shared.utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from shared.utils.schemas import UserOutput

logger = get_logger(__name__)


def user_output(user: User, include_location: bool = True) -> UserOutput:
    return UserOutput(
        id=user.id,
        company_id=user.company_id,
        name=user.name,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        last_lat=user.last_lat if include_location else None,
        last_lng=user.last_lng if include_location else None,
        last_seen_at=user.last_seen_at if include_location else None,
        has_push_token=bool(user.push_token),
    )


class UserService:
    """
    Service for company users.

    Business rules:
    - An ADMIN only creates VENDOR or DELIVERY users, within the plan limits
    - The ADMIN's own role can never change
    - Activating a user or moving it to another field role counts against the plan
    """

    def __init__(self, db: Session, notifier: PushNotifier | None = None):
        self._db = db
        self._notifier = notifier

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_all(self, company_id: int, field_only: bool = False) -> list[UserOutput]:
        """Active first, then by role and name. field_only adds the last known position."""
        query = select(User).where(User.company_id == company_id)
        if field_only:
            query = query.where(User.role.in_(FIELD_ROLES))
        query = query.order_by(
            case((User.is_active.is_(True), 0), else_=1),
            User.role.asc(),
            User.name.asc(),
        )
        users = self._db.execute(query).scalars().all()
        return [user_output(u, include_location=field_only) for u in users]

    # =========================================================================
    # Command Methods
    # =========================================================================

    def create(self, data: dict[str, Any], principal: Principal) -> UserOutput:
        company_id = principal.tenant_id()
        role = data["role"]
        if role not in FIELD_ROLES:
            raise ForbiddenError("crear usuarios con ese rol", role=role)

        email = data["email"].lower()
        if self._db.scalar(select(User.id).where(User.email == email)) is not None:
            raise ConflictError(ErrorMessages.USER_EMAIL_EXISTS, email=mask_email(email))

        enforce_user_limit(self._db, company_id, role)

        user = User(
            company_id=company_id,
            name=data["name"],
            email=email,
            password=hash_password(data["password"]),
            role=role,
        )
        user.set_created_by(principal.user_id, principal.email)
        self._db.add(user)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise ConflictError(ErrorMessages.USER_EMAIL_EXISTS, email=mask_email(email))
        self._db.refresh(user)

        logger.info("User created", user_id=user.id, company_id=company_id, role=role)
        return user_output(user)

    def update(self, user_id: int, data: dict[str, Any], principal: Principal) -> UserOutput:
        """Partial update of name, role and is_active."""
        company_id = principal.tenant_id()
        user = self._get_entity(user_id, company_id)

        new_role = data.get("role")
        if new_role is not None and user.role == Roles.ADMIN:
            raise ValidationError(ErrorMessages.ADMIN_ROLE_LOCKED, user_id=user_id)

        target_role = new_role or user.role
        becomes_active = data.get("is_active") is True and not user.is_active
        changes_role = new_role is not None and new_role != user.role
        if target_role in FIELD_ROLES and (becomes_active or (changes_role and user.is_active)):
            enforce_user_limit(self._db, company_id, target_role)

        if data.get("name") is not None:
            user.name = data["name"]
        if new_role is not None:
            user.role = new_role
        if data.get("is_active") is not None:
            if data["is_active"]:
                user.restore(principal.user_id, principal.email)
            else:
                user.soft_delete(principal.user_id, principal.email)
        user.set_updated_by(principal.user_id, principal.email)

        safe_commit(self._db)
        self._db.refresh(user)
        logger.info("User updated", user_id=user.id, fields=sorted(data.keys()))
        return user_output(user)

    def update_location(self, principal: Principal, lat: float, lng: float) -> User:
        """Store the caller's position. Only field users report a location."""
        if principal.role not in FIELD_ROLES:
            raise ForbiddenError("reportar ubicación", user_id=principal.user_id)
        user = self._get_entity(principal.user_id, principal.tenant_id())
        user.last_lat = lat
        user.last_lng = lng
        user.last_seen_at = utcnow()
        safe_commit(self._db)
        self._db.refresh(user)
        return user

    def update_push_token(self, principal: Principal, token: str) -> None:
        user = self._db.get(User, principal.user_id)
        if user is None or not user.is_active:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND, principal.user_id)
        user.push_token = token
        safe_commit(self._db)
        logger.info("Push token registered", user_id=user.id)

    def remind_visit(
        self,
        vendor_id: int,
        principal: Principal,
        customer_id: int | None = None,
        message: str | None = None,
    ) -> None:
        """Push a visit reminder to a vendor's device."""
        company_id = principal.tenant_id()
        vendor = self.get_vendor(vendor_id, company_id)
        if not vendor.push_token:
            raise ValidationError(ErrorMessages.VENDOR_WITHOUT_DEVICE, vendor_id=vendor_id)

        body = message or (
            f"Hola {vendor.name}, tienes clientes pendientes por visitar. "
            "Revisa la app y actualiza tus visitas."
        )
        data: dict[str, Any] = {"type": PushType.VISIT_REMINDER, "vendorId": vendor.id}
        if customer_id is not None:
            customer = self._db.scalar(
                select(Customer).where(
                    Customer.id == customer_id,
                    Customer.company_id == company_id,
                    Customer.is_active.is_(True),
                )
            )
            if customer is None:
                raise NotFoundError(ErrorMessages.CUSTOMER_NOT_FOUND, customer_id, company_id=company_id)
            data["customerId"] = customer.id
            if message is None:
                body = f"Recuerda visitar a {customer.name}."

        if self._notifier is not None:
            self._notifier.notify(vendor.push_token, "Recordatorio de visitas", body, data)
        logger.info("Visit reminder sent", vendor_id=vendor.id, customer_id=customer_id)

    def get_vendor(self, vendor_id: int, company_id: int) -> User:
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

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _get_entity(self, user_id: int, company_id: int) -> User:
        user = self._db.scalar(
            select(User).where(User.id == user_id, User.company_id == company_id)
        )
        if user is None:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND, user_id, company_id=company_id)
        return user
