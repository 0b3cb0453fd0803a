"""
Auth Service.

Credential checks for the two login surfaces and self-service registration.

- Mobile login: VENDOR and DELIVERY, bearer token
- Web login: ADMIN and SUPER_ADMIN, token stored in an HttpOnly cookie by the router
- Register: company + ADMIN + TRIAL subscription in one transaction
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Company, Plan, Subscription, User
from shared.config.constants import (
    DASHBOARD_ROLES,
    MOBILE_ROLES,
    BillingPeriod,
    ErrorMessages,
    Limits,
    Roles,
    SubscriptionStatus,
)
from shared.config.logging import audit_auth_event, auth_logger as logger
from shared.security.auth import access_token_ttl, sign_user_token
from shared.security.password import hash_password, verify_password
from shared.utils.dates import add_months, utcnow
from shared.utils.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    ServiceUnavailableError,
)
from shared.utils.schemas import LoginResponse, RegisterResponse, UserInfo


class AuthService:
    """
    Service for authentication and signup.

    Business rules:
    - Emails are unique across all companies
    - Inactive or unknown users and wrong passwords get the same 401
    - A user in the wrong app gets 403 before the password is checked
    """

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Login
    # =========================================================================

    def login_mobile(self, email: str, password: str, ip_address: str | None = None) -> LoginResponse:
        return self._login(email, password, MOBILE_ROLES, "MOBILE_LOGIN", ip_address)

    def login_web(self, email: str, password: str, ip_address: str | None = None) -> LoginResponse:
        return self._login(email, password, DASHBOARD_ROLES, "WEB_LOGIN", ip_address)

    def _login(
        self,
        email: str,
        password: str,
        allowed_roles: frozenset[str],
        event_type: str,
        ip_address: str | None,
    ) -> LoginResponse:
        email = email.lower()
        user = self._db.scalar(
            select(User).options(joinedload(User.company)).where(User.email == email)
        )

        if user is None or not user.is_active:
            audit_auth_event(event_type, email=email, success=False, reason="unknown_or_inactive", ip_address=ip_address)
            raise AuthenticationError(ErrorMessages.INVALID_CREDENTIALS)

        if user.role not in allowed_roles:
            audit_auth_event(
                event_type,
                user_id=user.id,
                email=email,
                success=False,
                reason="role_not_allowed",
                ip_address=ip_address,
                role=user.role,
            )
            raise ForbiddenError(detail=ErrorMessages.ACCESS_NOT_ALLOWED, user_id=user.id)

        if not verify_password(password, user.password):
            audit_auth_event(event_type, user_id=user.id, email=email, success=False, reason="bad_password", ip_address=ip_address)
            raise AuthenticationError(ErrorMessages.INVALID_CREDENTIALS)

        token = sign_user_token(user.id, user.company_id, user.role, user.email)
        audit_auth_event(event_type, user_id=user.id, email=email, success=True, ip_address=ip_address, role=user.role)

        return LoginResponse(
            access_token=token,
            expires_in=access_token_ttl(),
            user=UserInfo(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                company_id=user.company_id,
                company_name=user.company.name if user.company else None,
            ),
        )

    # =========================================================================
    # Registration
    # =========================================================================

    def register(
        self,
        company_name: str,
        admin_name: str,
        email: str,
        password: str,
        phone: str | None = None,
    ) -> RegisterResponse:
        """
        Create a company, its ADMIN and a TRIAL subscription.

        Raises:
            ConflictError: Email already registered.
            ServiceUnavailableError: No active plan to attach the trial to (503).
        """
        email = email.lower()
        if self._db.scalar(select(User.id).where(User.email == email)) is not None:
            raise ConflictError(ErrorMessages.ACCOUNT_EMAIL_EXISTS)

        plan = self._trial_plan()
        password_hash = hash_password(password)

        now = utcnow()
        trial_ends_at = now + timedelta(days=Limits.TRIAL_DAYS)

        try:
            company = Company(name=company_name, phone=phone)
            self._db.add(company)
            self._db.flush()

            user = User(
                company_id=company.id,
                name=admin_name,
                email=email,
                password=password_hash,
                role=Roles.ADMIN,
            )
            subscription = Subscription(
                company_id=company.id,
                plan_id=plan.id,
                status=SubscriptionStatus.TRIAL,
                billing_period=BillingPeriod.MONTHLY,
                trial_ends_at=trial_ends_at,
                current_period_start=now,
                current_period_end=add_months(now, 1),
            )
            self._db.add_all([user, subscription])
            self._db.commit()
        except IntegrityError:
            # Concurrent signup with the same email
            self._db.rollback()
            raise ConflictError(ErrorMessages.ACCOUNT_EMAIL_EXISTS)
        except Exception:
            self._db.rollback()
            raise

        audit_auth_event("REGISTER", user_id=user.id, email=email, success=True, company_id=company.id, plan=plan.name)
        logger.info("Company registered", company_id=company.id, plan=plan.name, trial_ends_at=trial_ends_at.isoformat())

        return RegisterResponse(
            company_id=company.id,
            company_name=company.name,
            user_id=user.id,
            email=user.email,
            trial_ends_at=trial_ends_at,
            trial_days=Limits.TRIAL_DAYS,
        )

    def _trial_plan(self) -> Plan:
        plan = self._db.scalar(
            select(Plan).where(Plan.name == Limits.TRIAL_PLAN_NAME, Plan.active.is_(True))
        )
        if plan is None:
            plan = self._db.scalar(
                select(Plan).where(Plan.active.is_(True)).order_by(Plan.price.desc()).limit(1)
            )
        if plan is None:
            raise ServiceUnavailableError(ErrorMessages.NO_PLANS_CONFIGURED)
        return plan
