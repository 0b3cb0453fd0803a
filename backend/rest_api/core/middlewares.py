"""
HTTP middlewares.

Registration order matters: Starlette runs the last one added first, so a
request goes through the correlation ID, then the JSON check, then the
security headers.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware

# JSON API plus one SSE stream: nothing may be framed, embedded or sniffed
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}
HSTS = "max-age=31536000; includeSubDomains"

UNSUPPORTED_MEDIA_TYPE = "Tipo de contenido no soportado. Use application/json"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = HSTS
        if "server" in response.headers:
            del response.headers["server"]
        return response


class JsonBodyMiddleware(BaseHTTPMiddleware):
    """
    415 for write requests that declare a non-JSON body. A missing
    Content-Type is let through (POST /api/auth/logout has no body).
    """

    WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})

    async def dispatch(self, request: Request, call_next):
        if request.method in self.WRITE_METHODS and not request.url.path.startswith("/api/health"):
            media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
            if media_type and media_type != "application/json":
                return JSONResponse(status_code=415, content={"detail": UNSUPPORTED_MEDIA_TYPE})
        return await call_next(request)


def register_middlewares(app: FastAPI) -> None:
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(JsonBodyMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
