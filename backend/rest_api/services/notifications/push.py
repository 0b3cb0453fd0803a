"""
Expo push notifications.

Best-effort delivery: a failed push is logged and dropped, never surfaced to
the API caller. Messages are queued as FastAPI background tasks so they go
out after the request's transaction has committed.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from fastapi import BackgroundTasks, Depends

from shared.config.logging import mask_token, push_logger as logger
from shared.config.settings import settings


@dataclass
class PushMessage:
    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: str = "default"

    def to_payload(self) -> dict[str, Any]:
        return {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "sound": self.sound,
        }


# =============================================================================
# Expo Client
# =============================================================================


class ExpoPushClient:
    """HTTP client for the Expo push API with a lazily created shared connection pool."""

    def __init__(self, url: str | None = None, timeout: float | None = None):
        self.url = url or settings.push_api_url
        self.timeout = timeout or settings.push_timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock: Optional[asyncio.Lock] = None
        self._init_lock = threading.Lock()

    def _get_lock(self) -> asyncio.Lock:
        if self._client_lock is None:
            with self._init_lock:
                if self._client_lock is None:
                    self._client_lock = asyncio.Lock()
        return self._client_lock

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None and not self._client.is_closed:
            return self._client

        async with self._get_lock():
            if self._client is None or self._client.is_closed:
                self._client = httpx.AsyncClient(
                    timeout=self.timeout,
                    limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
        self._client_lock = None

    async def send(self, message: PushMessage) -> bool:
        """
        POST one message to Expo.

        Returns True on a 2xx answer, False otherwise. Never raises.
        """
        try:
            client = await self._get_client()
            response = await client.post(
                self.url,
                json=message.to_payload(),
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "Push notification failed",
                to=mask_token(message.to),
                error=str(e),
            )
            return False

        logger.info(
            "Push notification sent",
            to=mask_token(message.to),
            push_type=message.data.get("type"),
        )
        return True


# Process-wide client, closed in the application lifespan
expo_client = ExpoPushClient()


def get_push_client() -> ExpoPushClient:
    """Dependency hook; tests override it with an in-memory fake."""
    return expo_client


# =============================================================================
# Per-request notifier
# =============================================================================


class PushNotifier:
    """
    Queues push messages on the request's BackgroundTasks.

    Users without a registered token are skipped silently.
    """

    def __init__(self, background_tasks: BackgroundTasks, client: ExpoPushClient):
        self._background_tasks = background_tasks
        self._client = client

    def notify(
        self,
        token: str | None,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        if not token:
            logger.debug("Push skipped, no device token", title=title)
            return False
        message = PushMessage(to=token, title=title, body=body, data=data or {})
        self._background_tasks.add_task(self._client.send, message)
        return True


def get_push_notifier(
    background_tasks: BackgroundTasks,
    client: ExpoPushClient = Depends(get_push_client),
) -> PushNotifier:
    return PushNotifier(background_tasks, client)
