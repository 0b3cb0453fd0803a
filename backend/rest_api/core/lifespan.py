"""
Startup and shutdown of the API process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config.logging import rest_api_logger as logger, setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal, engine
from shared.infrastructure.events import close_redis_pool
from rest_api.models import Base
from rest_api.seed import seed
from rest_api.services.notifications import expo_client


def check_configuration() -> None:
    """Refuse to boot production with default secrets."""
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Insecure configuration", problem=problem)
    if problems:
        raise RuntimeError("Configuración insegura para producción: " + "; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()

    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed(db)

    logger.info(
        "DistriApp API ready",
        env=settings.environment,
        redis=settings.redis_enabled,
        timezone=settings.business_timezone,
    )
    try:
        yield
    finally:
        await expo_client.close()
        await close_redis_pool()
        logger.info("DistriApp API stopped")
