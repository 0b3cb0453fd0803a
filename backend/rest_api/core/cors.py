"""
CORS for the web dashboard.

The dashboard authenticates with the session cookie, so credentials are
allowed and origins are an explicit list. The Expo app talks to the API
natively and never sends a preflight.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings


# Next.js dev server and Expo web
DEFAULT_CORS_ORIGINS = [
    f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in (3000, 8081)
]


def get_cors_origins() -> list[str]:
    """ALLOWED_ORIGINS, comma-separated, or the local development origins."""
    configured = [origin.strip() for origin in settings.allowed_origins.split(",")]
    return [origin for origin in configured if origin] or DEFAULT_CORS_ORIGINS


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Accept-Language", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
        # No preflight caching while developing
        max_age=0 if settings.environment == "development" else 600,
    )
