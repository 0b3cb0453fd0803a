"""
Authentication router.
Handles mobile and web login, logout, the current principal and signup.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import Principal, access_token_ttl, current_principal
from shared.security.rate_limit import client_ip, limiter
from shared.utils.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
)
from rest_api.services.domain import AuthService


router = APIRouter(prefix="/api/auth", tags=["auth"])


# =============================================================================
# HttpOnly Cookie Helpers
# =============================================================================

def set_session_cookie(response: Response, token: str) -> None:
    """
    Store the dashboard session token as an HttpOnly cookie.

    - httponly: Cannot be read by JavaScript
    - secure: Only sent over HTTPS (configurable for dev)
    - samesite: CSRF protection
    - max_age: same lifetime as the token
    """
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=access_token_ttl(),
        path="/",
        domain=settings.cookie_domain or None,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        domain=settings.cookie_domain or None,
    )


def _get_service(db: Session) -> AuthService:
    return AuthService(db)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Mobile login for VENDOR and DELIVERY users.

    Returns a bearer token valid for seven days.
    """
    return _get_service(db).login_mobile(body.email, body.password, client_ip(request))


@router.post("/web-login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def web_login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """Dashboard login for ADMIN and SUPER_ADMIN; the token is also set as a session cookie."""
    result = _get_service(db).login_web(body.email, body.password, client_ip(request))
    set_session_cookie(response, result.access_token)
    return result


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    clear_session_cookie(response)
    return MessageResponse(ok=True, message="Sesión cerrada")


@router.get("/me", response_model=MeResponse)
def me(principal: Principal = Depends(current_principal)) -> MeResponse:
    return MeResponse(
        user_id=principal.user_id,
        company_id=principal.company_id,
        role=principal.role,
        email=principal.email,
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.login_rate_limit)
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    """Create a company, its ADMIN user and a 14-day TRIAL subscription."""
    return _get_service(db).register(
        company_name=body.company_name,
        admin_name=body.admin_name,
        email=body.email,
        password=body.password,
        phone=body.phone,
    )
