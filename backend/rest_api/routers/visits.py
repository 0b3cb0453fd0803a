"""
Visit endpoints for the vendor app.

- POST  /api/visits/checkin          open a visit at the customer
- PATCH /api/visits/{id}/checkout    close it with a result (may create an order)
- POST  /api/visits                  one-step visit for older app versions
- GET/POST /api/scheduled-visits     the vendor's agenda
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import (
    CheckinRequest,
    CheckoutRequest,
    CheckoutResponse,
    LegacyVisitCreate,
    ScheduledVisitCreate,
    ScheduledVisitOutput,
    VisitOutput,
)
from rest_api.routers._common import require_editor_write, require_vendor, require_vendor_write
from rest_api.services.domain import VisitService


router = APIRouter(prefix="/api", tags=["visits"])


def _get_service(db: Session) -> VisitService:
    return VisitService(db)


@router.post("/visits/checkin", response_model=VisitOutput, status_code=status.HTTP_201_CREATED)
def check_in(
    body: CheckinRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_vendor_write),
) -> VisitOutput:
    return _get_service(db).check_in(body.customer_id, principal, lat=body.lat, lng=body.lng)


@router.patch("/visits/{visit_id}/checkout", response_model=CheckoutResponse)
def check_out(
    visit_id: int,
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_vendor_write),
) -> CheckoutResponse:
    """
    Record the visit result.

    ORDER_TAKEN with an amount creates an order in PENDING_REVIEW; scheduled_for
    books the next visit. Both happen in the same transaction as the checkout.
    """
    return _get_service(db).check_out(
        visit_id,
        principal,
        result=body.result,
        reason=body.reason,
        order_amount=body.order_amount,
        notes=body.notes,
        delivery_date=body.delivery_date,
        scheduled_for=body.scheduled_for,
    )


@router.post("/visits", response_model=VisitOutput, status_code=status.HTTP_201_CREATED)
def register_visit(
    body: LegacyVisitCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_editor_write),
) -> VisitOutput:
    return _get_service(db).register_completed(
        principal,
        customer_id=body.customer_id,
        result=body.result,
        reason=body.reason,
        order_amount=body.order_amount,
        notes=body.notes,
        lat=body.lat,
        lng=body.lng,
    )


@router.get("/scheduled-visits", response_model=list[ScheduledVisitOutput])
def list_scheduled_visits(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_vendor),
) -> list[ScheduledVisitOutput]:
    return _get_service(db).list_scheduled(principal)


@router.post("/scheduled-visits", response_model=ScheduledVisitOutput, status_code=status.HTTP_201_CREATED)
def create_scheduled_visit(
    body: ScheduledVisitCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_vendor_write),
) -> ScheduledVisitOutput:
    return _get_service(db).schedule(principal, body.customer_id, body.scheduled_for, body.notes)
