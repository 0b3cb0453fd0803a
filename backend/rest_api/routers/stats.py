"""
Dashboard and statistics endpoints.

ADMIN: /api/dashboard, /api/stats/vendors, /api/stats/deliveries
VENDOR: /api/vendor/stats, /api/vendor/my-visits
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import (
    DashboardOutput,
    DeliveryStatsOutput,
    MyVisitsOutput,
    VendorAppStats,
    VendorStatsOutput,
)
from rest_api.routers._common import require_admin, require_vendor
from rest_api.services.domain import StatsService


router = APIRouter(prefix="/api", tags=["stats"])


def _get_service(db: Session) -> StatsService:
    return StatsService(db)


@router.get("/dashboard", response_model=DashboardOutput)
def dashboard(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> DashboardOutput:
    return _get_service(db).dashboard(principal.tenant_id())


@router.get("/stats/vendors", response_model=VendorStatsOutput)
def vendor_performance(
    days: int = Query(Limits.DEFAULT_STATS_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> VendorStatsOutput:
    return _get_service(db).vendor_stats(principal.tenant_id(), days=days)


@router.get("/stats/deliveries", response_model=DeliveryStatsOutput)
def delivery_performance(
    day: date | None = Query(None, alias="date"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> DeliveryStatsOutput:
    """Defaults to the current business day."""
    return _get_service(db).delivery_stats(principal.tenant_id(), day)


@router.get("/vendor/stats", response_model=VendorAppStats)
def vendor_app_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_vendor),
) -> VendorAppStats:
    return _get_service(db).vendor_app_stats(principal.user_id, principal.tenant_id())


@router.get("/vendor/my-visits", response_model=MyVisitsOutput)
def my_visits(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_vendor),
) -> MyVisitsOutput:
    return _get_service(db).my_visits(principal.user_id, principal.tenant_id())
