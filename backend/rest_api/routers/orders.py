"""
Order endpoints (ADMIN).

Thin router that delegates to OrderService.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import OrderOutput, OrderStatusName, OrderUpdate
from rest_api.routers._common import require_admin, require_admin_write
from rest_api.services.domain import OrderService
from rest_api.services.notifications import PushNotifier, get_push_notifier


router = APIRouter(prefix="/api/orders", tags=["orders"])


def _get_service(db: Session, notifier: PushNotifier | None = None) -> OrderService:
    return OrderService(db, notifier)


@router.get("", response_model=list[OrderOutput])
def list_orders(
    status: OrderStatusName | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> list[OrderOutput]:
    return _get_service(db).list_all(principal.tenant_id(), status)


@router.get("/unassigned", response_model=list[OrderOutput])
def list_unassigned_orders(
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    min_amount: int | None = Query(None, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> list[OrderOutput]:
    """PENDING orders that have no delivery yet, soonest delivery date first."""
    return _get_service(db).list_unassigned(
        principal.tenant_id(),
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
    )


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> OrderOutput:
    return _get_service(db).get_by_id(order_id, principal.tenant_id())


@router.patch("/{order_id}", response_model=OrderOutput)
def update_order(
    order_id: int,
    body: OrderUpdate,
    db: Session = Depends(get_db),
    notifier: PushNotifier = Depends(get_push_notifier),
    principal: Principal = Depends(require_admin_write),
) -> OrderOutput:
    """
    Approve, cancel, reschedule or (un)assign an order.

    delivery_person_id sent as null unassigns; leaving it out keeps the
    current assignment.
    """
    return _get_service(db, notifier).update(
        order_id,
        principal,
        body.model_fields_set,
        action=body.action,
        delivery_date=body.delivery_date,
        delivery_person_id=body.delivery_person_id,
    )
