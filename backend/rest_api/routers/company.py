"""
Company endpoints (ADMIN).

The admin sees its own company with the current subscription and plan, and can
edit fiscal data and the weekly visit goal.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import CompanyOutput, CompanyUpdate
from rest_api.routers._common import require_admin, require_admin_write
from rest_api.services.domain import CompanyService


router = APIRouter(prefix="/api/company", tags=["company"])


@router.get("", response_model=CompanyOutput)
def get_company(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> CompanyOutput:
    return CompanyService(db).get(principal.tenant_id())


@router.patch("", response_model=CompanyOutput)
def update_company(
    body: CompanyUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_write),
) -> CompanyOutput:
    return CompanyService(db).update(body.model_dump(exclude_unset=True), principal)
