"""
slowapi limiter for the unauthenticated auth endpoints (login, web-login,
register). Limits are counted per client IP.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.constants import ErrorMessages
from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


def client_ip(request: Request) -> str:
    """
    Caller address. Behind the load balancer (TRUST_PROXY_HEADERS=true) the
    first X-Forwarded-For hop is the phone or browser.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


limiter = Limiter(key_func=client_ip)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after = exc.limit.limit.get_expiry()
    logger.warning(
        "Auth rate limit hit",
        path=request.url.path,
        ip=client_ip(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"detail": ErrorMessages.RATE_LIMIT_EXCEEDED, "retry_after": retry_after},
        headers={"Retry-After": str(retry_after)},
    )
