"""
Vendor endpoints for the admin dashboard.

- GET  /api/vendors/stream             live locations of the field team (SSE)
- POST /api/vendors/{id}/remind-visit  push a visit reminder to a vendor
"""

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import Principal
from shared.utils.schemas import MessageResponse, RemindVisitRequest
from rest_api.routers._common import require_admin, require_admin_write
from rest_api.services.domain import UserService
from rest_api.services.location import LocationBroadcaster, get_location_broadcaster
from rest_api.services.notifications import PushNotifier, get_push_notifier


logger = get_logger(__name__)

router = APIRouter(prefix="/api/vendors", tags=["vendors"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx buffering
}


async def location_events(
    request: Request,
    broadcaster: LocationBroadcaster,
    company_id: int,
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    """
    SSE frames for one dashboard client.

    Starts with a `: connected` comment, then one `data:` frame per update and
    a `: ping` comment whenever the channel is idle for keepalive_seconds.
    """
    async with broadcaster.subscribe(company_id) as queue:
        yield ": connected\n\n"
        while not await request.is_disconnected():
            try:
                data = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": ping\n\n"
                continue
            yield f"data: {data}\n\n"
    logger.debug("Location stream closed", company_id=company_id)


@router.get("/stream")
async def stream_locations(
    request: Request,
    broadcaster: LocationBroadcaster = Depends(get_location_broadcaster),
    principal: Principal = Depends(require_admin),
) -> StreamingResponse:
    company_id = principal.tenant_id()
    logger.info("Location stream opened", company_id=company_id, user_id=principal.user_id)
    return StreamingResponse(
        location_events(request, broadcaster, company_id, settings.location_keepalive_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/{vendor_id}/remind-visit", response_model=MessageResponse)
def remind_visit(
    vendor_id: int,
    body: RemindVisitRequest | None = None,
    db: Session = Depends(get_db),
    notifier: PushNotifier = Depends(get_push_notifier),
    principal: Principal = Depends(require_admin_write),
) -> MessageResponse:
    """400 when the vendor never registered a device."""
    UserService(db, notifier).remind_visit(
        vendor_id,
        principal,
        customer_id=body.customer_id if body else None,
        message=body.message if body else None,
    )
    return MessageResponse(ok=True)
