"""
Tokens and the authenticated caller.

The mobile app sends `Authorization: Bearer <jwt>`; the web dashboard gets the
same JWT in an HttpOnly cookie. Either way the request resolves to a
`Principal`, and tenant endpoints take the company from it, never from the
request body.

Claims: sub (user id as a string), role, company_id (null for SUPER_ADMIN),
email, plus iss/aud/iat/exp/jti.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Cookie, Depends, Header

from shared.config.constants import ErrorMessages, Roles
from shared.config.logging import get_logger
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from shared.utils.exceptions import AuthenticationError, ForbiddenError, InsufficientRoleError

logger = get_logger(__name__)

ALGORITHM = "HS256"


def access_token_ttl() -> int:
    """Seconds a login stays valid; also the session cookie max-age."""
    return settings.jwt_access_token_expire_days * 24 * 60 * 60


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str
    company_id: int | None
    email: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Roles.SUPER_ADMIN

    def tenant_id(self) -> int:
        """The caller's company; 403 for a user that has none."""
        if self.company_id is None:
            raise ForbiddenError(detail=ErrorMessages.NO_COMPANY, user_id=self.user_id)
        return self.company_id

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> Principal:
        return cls(
            user_id=int(claims["sub"]),
            role=claims["role"],
            company_id=claims.get("company_id"),
            email=claims.get("email"),
        )


# -----------------------------------------------------------------------------
# JWT
# -----------------------------------------------------------------------------


def sign_jwt(claims: dict[str, Any], ttl_seconds: int | None = None) -> str:
    issued_at = int(time.time())
    return jwt.encode(
        {
            **claims,
            "iss": JWT_ISSUER,
            "aud": JWT_AUDIENCE,
            "iat": issued_at,
            "exp": issued_at + (access_token_ttl() if ttl_seconds is None else ttl_seconds),
            "jti": uuid.uuid4().hex,
        },
        JWT_SECRET,
        algorithm=ALGORITHM,
    )


def sign_user_token(user_id: int, company_id: int | None, role: str, email: str | None = None) -> str:
    return sign_jwt({"sub": str(user_id), "company_id": company_id, "role": role, "email": email})


def _claims_problem(claims: dict[str, Any]) -> str | None:
    """Why a correctly signed token still cannot be trusted, if it cannot."""
    if "sub" not in claims or "role" not in claims:
        return "missing claims"
    subject = str(claims["sub"])
    if not (subject.isascii() and subject.isdigit()):
        return "malformed subject"
    if claims["role"] not in Roles.ALL:
        return "unknown role"
    company_id = claims.get("company_id")
    if company_id is not None and (isinstance(company_id, bool) or not isinstance(company_id, int)):
        return "malformed company_id"
    if claims["role"] != Roles.SUPER_ADMIN and company_id is None:
        return "tenant role without company"
    return None


def verify_jwt(token: str) -> dict[str, Any]:
    """Decoded claims; AuthenticationError (401) for anything else."""
    try:
        claims = jwt.decode(
            token, JWT_SECRET, algorithms=[ALGORITHM], audience=JWT_AUDIENCE, issuer=JWT_ISSUER
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(ErrorMessages.TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected JWT", error=str(e))
        raise AuthenticationError(ErrorMessages.INVALID_TOKEN)

    problem = _claims_problem(claims)
    if problem:
        raise AuthenticationError(ErrorMessages.INVALID_TOKEN, reason=problem)
    return claims


def get_bearer_token(authorization: str | None) -> str | None:
    """None without the header; 401 when it is present but not a bearer token."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise AuthenticationError(ErrorMessages.INVALID_TOKEN, reason="malformed header")
    return token.strip()


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


def current_principal(
    authorization: str | None = Header(default=None, alias="Authorization"),
    session_token: str | None = Cookie(default=None, alias=settings.session_cookie_name),
) -> Principal:
    """Bearer header first, dashboard session cookie second."""
    token = get_bearer_token(authorization) or session_token
    if not token:
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)
    return Principal.from_claims(verify_jwt(token))


def require_roles(principal: Principal, allowed: frozenset[str]) -> None:
    if principal.role not in allowed:
        raise InsufficientRoleError(sorted(allowed), user_id=principal.user_id, role=principal.role)


def roles_required(*allowed: str):
    """
    Dependency factory: authenticate, then check the role.

        require_admin = roles_required(Roles.ADMIN)
    """
    allowed_roles = frozenset(allowed)

    def dependency(principal: Principal = Depends(current_principal)) -> Principal:
        require_roles(principal, allowed_roles)
        return principal

    return dependency
