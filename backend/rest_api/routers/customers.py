"""
Customer endpoints.

Thin router that delegates to CustomerService. Static paths (nearby,
batch-assign) are declared before /customers/{customer_id}.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import (
    BatchAssignResult,
    CustomerAssign,
    CustomerBatchAssign,
    CustomerCreate,
    CustomerDetail,
    CustomerOutput,
    CustomerUpdate,
    MessageResponse,
    NearbyCustomer,
)
from rest_api.routers._common import (
    require_admin,
    require_admin_write,
    require_editor_write,
    require_tenant_user,
)
from rest_api.services.domain import CustomerService
from rest_api.services.notifications import PushNotifier, get_push_notifier


router = APIRouter(prefix="/api/customers", tags=["customers"])


def _get_service(db: Session, notifier: PushNotifier | None = None) -> CustomerService:
    return CustomerService(db, notifier)


@router.get("", response_model=list[CustomerOutput])
def list_customers(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_tenant_user),
) -> list[CustomerOutput]:
    """Active customers, never visited and coldest first, with their temperature."""
    return _get_service(db).list_all(principal.tenant_id())


@router.post("", response_model=CustomerOutput, status_code=status.HTTP_201_CREATED)
def create_customer(
    body: CustomerCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_editor_write),
) -> CustomerOutput:
    """
    Create a customer.

    A VENDOR becomes the assigned vendor of the customers it creates.
    Fails with 403 when the plan's customer limit is reached.
    """
    return _get_service(db).create(body.model_dump(exclude_unset=True), principal)


@router.get("/nearby", response_model=list[NearbyCustomer])
def nearby_customers(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(Limits.DEFAULT_NEARBY_RADIUS_KM, gt=0),
    unassigned: bool = False,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> list[NearbyCustomer]:
    return _get_service(db).find_nearby(
        principal.tenant_id(),
        lat,
        lng,
        radius_km=radius_km,
        only_unassigned=unassigned,
    )


@router.patch("/batch-assign", response_model=BatchAssignResult)
def batch_assign_customers(
    body: CustomerBatchAssign,
    db: Session = Depends(get_db),
    notifier: PushNotifier = Depends(get_push_notifier),
    principal: Principal = Depends(require_admin_write),
) -> BatchAssignResult:
    updated = _get_service(db, notifier).batch_assign(body.customer_ids, body.vendor_id, principal)
    return BatchAssignResult(updated=updated)


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_tenant_user),
) -> CustomerDetail:
    return _get_service(db).get_detail(customer_id, principal.tenant_id())


@router.patch("/{customer_id}", response_model=CustomerOutput)
def update_customer(
    customer_id: int,
    body: CustomerUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_editor_write),
) -> CustomerOutput:
    return _get_service(db).update(customer_id, body.model_dump(exclude_unset=True), principal)


@router.delete("/{customer_id}", response_model=MessageResponse)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_write),
) -> MessageResponse:
    _get_service(db).delete(customer_id, principal)
    return MessageResponse(ok=True, message="Cliente eliminado")


@router.patch("/{customer_id}/assign", response_model=CustomerOutput)
def assign_customer(
    customer_id: int,
    body: CustomerAssign,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_write),
) -> CustomerOutput:
    """Assign a vendor, or unassign with vendor_id null."""
    return _get_service(db).assign(customer_id, body.vendor_id, principal)
