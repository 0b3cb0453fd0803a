"""
Delivery endpoints.

ADMIN assigns orders to delivery persons; the DELIVERY user works through
today's list and reports each outcome.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import (
    DeliveryBatchResult,
    DeliveryCreate,
    DeliveryFinish,
    DeliveryOutput,
    OrderOutput,
)
from rest_api.routers._common import require_admin_write, require_delivery, require_delivery_write
from rest_api.services.domain import DeliveryService
from rest_api.services.notifications import PushNotifier, get_push_notifier


router = APIRouter(prefix="/api/deliveries", tags=["deliveries"])


def _get_service(db: Session, notifier: PushNotifier | None = None) -> DeliveryService:
    return DeliveryService(db, notifier)


@router.post(
    "",
    response_model=DeliveryOutput | DeliveryBatchResult,
    status_code=status.HTTP_201_CREATED,
)
def assign_deliveries(
    body: DeliveryCreate,
    db: Session = Depends(get_db),
    notifier: PushNotifier = Depends(get_push_notifier),
    principal: Principal = Depends(require_admin_write),
) -> DeliveryOutput | DeliveryBatchResult:
    """
    Assign a delivery person.

    Single mode (order_id) answers 409 when the order already has a delivery;
    batch mode (order_ids) silently skips orders that are not assignable.
    """
    service = _get_service(db, notifier)
    if body.order_ids:
        return service.assign_batch(
            body.order_ids, body.delivery_person_id, principal, body.delivery_date
        )
    return service.assign_one(body.order_id, body.delivery_person_id, principal, body.delivery_date)


@router.get("/today", response_model=list[OrderOutput])
def todays_deliveries(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_delivery),
) -> list[OrderOutput]:
    return _get_service(db).list_today(principal)


@router.patch("/{order_id}/start", response_model=OrderOutput)
def start_delivery(
    order_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_delivery_write),
) -> OrderOutput:
    return _get_service(db).start(order_id, principal)


@router.patch("/{order_id}/deliver", response_model=OrderOutput)
def deliver_order(
    order_id: int,
    body: DeliveryFinish | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_delivery_write),
) -> OrderOutput:
    return _get_service(db).deliver(order_id, principal, body.notes if body else None)


@router.patch("/{order_id}/fail", response_model=OrderOutput)
def fail_delivery(
    order_id: int,
    body: DeliveryFinish | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_delivery_write),
) -> OrderOutput:
    """The order goes back to PENDING so the admin can reassign it."""
    return _get_service(db).fail(order_id, principal, body.notes if body else None)
