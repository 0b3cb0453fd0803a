"""
Platform operator endpoints (SUPER_ADMIN).

- /api/superadmin/companies                  every tenant with usage counts
- /api/superadmin/companies/{id}/subscription create or change a subscription
- /api/superadmin/plans                      plan catalog

Not tenant-scoped and never blocked by the subscription write-guard.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import (
    CompanyAdminUpdate,
    CompanyOutput,
    CompanySummary,
    PlanCreate,
    PlanOutput,
    PlanUpdate,
    SubscriptionOutput,
    SubscriptionUpsert,
)
from rest_api.routers._common import require_super_admin
from rest_api.services.domain import SuperadminService


router = APIRouter(prefix="/api/superadmin", tags=["superadmin"])


def _get_service(db: Session) -> SuperadminService:
    return SuperadminService(db)


# =============================================================================
# Companies
# =============================================================================


@router.get("/companies", response_model=list[CompanySummary])
def list_companies(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> list[CompanySummary]:
    return _get_service(db).list_companies()


@router.get("/companies/{company_id}", response_model=CompanyOutput)
def get_company(
    company_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> CompanyOutput:
    return _get_service(db).get_company(company_id)


@router.patch("/companies/{company_id}", response_model=CompanyOutput)
def update_company(
    company_id: int,
    body: CompanyAdminUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> CompanyOutput:
    return _get_service(db).update_company(company_id, body.model_dump(exclude_unset=True), principal)


@router.patch("/companies/{company_id}/subscription", response_model=SubscriptionOutput)
def upsert_subscription(
    company_id: int,
    body: SubscriptionUpsert,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> SubscriptionOutput:
    """
    Create the subscription when the company has none (plan_id required),
    otherwise update it. A plan or billing period change without an explicit
    current_period_end restarts the period from now.
    """
    return _get_service(db).upsert_subscription(
        company_id, body.model_dump(exclude_unset=True), principal
    )


# =============================================================================
# Plans
# =============================================================================


@router.get("/plans", response_model=list[PlanOutput])
def list_plans(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> list[PlanOutput]:
    return _get_service(db).list_plans()


@router.post("/plans", response_model=PlanOutput, status_code=status.HTTP_201_CREATED)
def create_plan(
    body: PlanCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> PlanOutput:
    return _get_service(db).create_plan(body.model_dump(), principal)


@router.patch("/plans/{plan_id}", response_model=PlanOutput)
def update_plan(
    plan_id: int,
    body: PlanUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
) -> PlanOutput:
    return _get_service(db).update_plan(plan_id, body.model_dump(exclude_unset=True), principal)
