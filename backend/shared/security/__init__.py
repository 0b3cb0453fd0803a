"""
Security module: Authentication, password hashing, rate limiting.
"""

from shared.security.auth import (
    Principal,
    sign_jwt,
    sign_user_token,
    verify_jwt,
    get_bearer_token,
    current_principal,
    require_roles,
    roles_required,
)
from shared.security.password import hash_password, verify_password
from shared.security.rate_limit import client_ip, limiter, rate_limit_exceeded_handler

__all__ = [
    # auth
    "Principal",
    "sign_jwt",
    "sign_user_token",
    "verify_jwt",
    "get_bearer_token",
    "current_principal",
    "require_roles",
    "roles_required",
    # password
    "hash_password",
    "verify_password",
    # rate_limit
    "client_ip",
    "limiter",
    "rate_limit_exceeded_handler",
]
