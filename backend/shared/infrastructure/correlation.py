"""
X-Request-ID handling.

Mobile clients and the dashboard may send their own X-Request-ID; anything
that does not look like an identifier is replaced by a fresh UUID. The ID is
echoed back on the response and stamped on every log record emitted while the
request is being served.
"""

import logging
import re
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

_current_request_id: ContextVar[str | None] = ContextVar("distriapp_request_id", default=None)


def resolve_request_id(incoming: str | None) -> str:
    """Accept the client's ID when it is a short token, otherwise mint one."""
    if incoming and _VALID_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        token = _current_request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _current_request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class CorrelationIdFilter(logging.Filter):
    """Adds `request_id` ("-" outside a request) to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _current_request_id.get() or "-"
        return True
