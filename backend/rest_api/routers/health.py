"""
Liveness and dependency checks for the load balancer and the operator CLI.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal
from shared.infrastructure.events import check_redis_health


router = APIRouter(prefix="/api/health", tags=["health"])


def check_database() -> dict:
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}


@router.get("")
def health():
    return {"status": "healthy", "service": "distriapp-api", "environment": settings.environment}


@router.get("/detailed")
async def detailed_health():
    """503 when PostgreSQL or an enabled Redis does not answer."""
    dependencies = {"database": check_database(), "redis": await check_redis_health()}
    healthy = all(dep["status"] != "unhealthy" for dep in dependencies.values())
    body = {
        "status": "healthy" if healthy else "degraded",
        "service": "distriapp-api",
        "environment": settings.environment,
        "dependencies": dependencies,
    }
    return body if healthy else JSONResponse(content=body, status_code=503)
