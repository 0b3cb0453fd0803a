"""
DistriApp REST API.

    uvicorn rest_api.main:app --port 8000
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError

from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers import (
    auth,
    company,
    customers,
    deliveries,
    health,
    orders,
    stats,
    superadmin,
    users,
    vendors,
    visits,
)
from shared.config.constants import ErrorMessages
from shared.config.logging import rest_api_logger as logger
from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler


app = FastAPI(
    title="DistriApp API",
    description="Visitas, pedidos y entregas para distribuidoras mayoristas",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """400 (not FastAPI's 422) with the offending fields."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ErrorMessages.INVALID_DATA, "errors": errors},
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """A unique constraint lost a race that the service-level checks did not see."""
    logger.warning("Integrity error", path=request.url.path, error=str(exc.orig))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": ErrorMessages.DUPLICATE_RECORD},
    )


configure_cors(app)
register_middlewares(app)

for module in (
    health,
    auth,
    customers,
    visits,
    orders,
    deliveries,
    users,
    vendors,
    stats,
    company,
    superadmin,
):
    app.include_router(module.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("rest_api.main:app", host="0.0.0.0", port=settings.rest_api_port, reload=True)
