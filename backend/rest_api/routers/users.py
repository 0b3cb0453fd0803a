"""
User endpoints.

ADMIN manages the team; field users report their own location and push token.
/users/location and /users/push-token are declared before /users/{user_id}.
"""

from typing import Any, Literal

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import Principal, current_principal
from shared.utils.schemas import (
    LocationUpdate,
    MessageResponse,
    PushTokenUpdate,
    UserCreate,
    UserOutput,
    UserUpdate,
)
from rest_api.models import User
from rest_api.routers._common import require_admin, require_admin_write, require_field_write
from rest_api.services.domain import UserService
from rest_api.services.location import LocationBroadcaster, get_location_broadcaster


router = APIRouter(prefix="/api/users", tags=["users"])


def _get_service(db: Session) -> UserService:
    return UserService(db)


def location_payload(user: User) -> dict[str, Any]:
    """Body of a LOCATION_UPDATED event."""
    return {
        "user_id": user.id,
        "name": user.name,
        "role": user.role,
        "lat": user.last_lat,
        "lng": user.last_lng,
        "last_seen_at": user.last_seen_at.isoformat() if user.last_seen_at else None,
    }


@router.get("", response_model=list[UserOutput])
def list_users(
    role: Literal["field"] | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> list[UserOutput]:
    """All company users; role=field keeps VENDOR/DELIVERY and adds their last position."""
    return _get_service(db).list_all(principal.tenant_id(), field_only=role == "field")


@router.post("", response_model=UserOutput, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_write),
) -> UserOutput:
    return _get_service(db).create(body.model_dump(), principal)


@router.patch("/location", response_model=MessageResponse)
def update_location(
    body: LocationUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    broadcaster: LocationBroadcaster = Depends(get_location_broadcaster),
    principal: Principal = Depends(require_field_write),
) -> MessageResponse:
    """Store the caller's position and fan it out to the company's live map."""
    user = _get_service(db).update_location(principal, body.lat, body.lng)
    background_tasks.add_task(broadcaster.publish, user.company_id, location_payload(user))
    return MessageResponse(ok=True)


@router.patch("/push-token", response_model=MessageResponse)
def update_push_token(
    body: PushTokenUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(current_principal),
) -> MessageResponse:
    _get_service(db).update_push_token(principal, body.token)
    return MessageResponse(ok=True)


@router.patch("/{user_id}", response_model=UserOutput)
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin_write),
) -> UserOutput:
    return _get_service(db).update(user_id, body.model_dump(exclude_unset=True), principal)
