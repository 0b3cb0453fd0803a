"""
Per-company broadcast of field-user locations.

Every subscriber gets a local asyncio.Queue. With Redis enabled a reader task
also pipes the company channel into that queue, so updates published by any
API worker reach every SSE client. When Redis is disabled or a publish fails,
the update is delivered straight to the subscribers of this process.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager, suppress
from typing import Any, AsyncIterator

import redis.asyncio as redis

from shared.config.constants import EventType
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.events import (
    Event,
    channel_company_locations,
    get_redis_pool,
    publish_event,
)

logger = get_logger(__name__)

SUBSCRIBER_QUEUE_SIZE = 100


class LocationBroadcaster:
    """Fan-out of LOCATION_UPDATED events to SSE subscribers, scoped by company."""

    def __init__(self, use_redis: bool | None = None):
        self._use_redis = settings.redis_enabled if use_redis is None else use_redis
        self._subscribers: dict[int, set[asyncio.Queue[str]]] = defaultdict(set)

    def subscriber_count(self, company_id: int) -> int:
        return len(self._subscribers.get(company_id, ()))

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish(self, company_id: int, payload: dict[str, Any]) -> None:
        """Publish a location update; never raises on transport errors."""
        event = Event(type=EventType.LOCATION_UPDATED, company_id=company_id, entity=payload)

        if self._use_redis:
            try:
                client = await get_redis_pool()
                await publish_event(client, channel_company_locations(company_id), event)
                return
            except (redis.RedisError, OSError) as e:
                logger.warning(
                    "Location publish via Redis failed, delivering locally",
                    company_id=company_id,
                    error=str(e),
                )

        self._deliver_local(company_id, event.to_json())

    def _deliver_local(self, company_id: int, data: str) -> None:
        for queue in list(self._subscribers.get(company_id, ())):
            _offer(queue, data)

    # =========================================================================
    # Subscribing
    # =========================================================================

    @asynccontextmanager
    async def subscribe(self, company_id: int) -> AsyncIterator[asyncio.Queue[str]]:
        """
        Register a subscriber for the lifetime of the context.

        Usage:
            async with broadcaster.subscribe(company_id) as queue:
                data = await queue.get()
        """
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers[company_id].add(queue)
        reader: asyncio.Task | None = None
        if self._use_redis:
            reader = asyncio.create_task(self._pump_redis(company_id, queue))

        logger.debug("Location subscriber added", company_id=company_id)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(company_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    self._subscribers.pop(company_id, None)
            if reader is not None:
                reader.cancel()
                with suppress(asyncio.CancelledError):
                    await reader
            logger.debug("Location subscriber removed", company_id=company_id)

    async def _pump_redis(self, company_id: int, queue: asyncio.Queue[str]) -> None:
        channel = channel_company_locations(company_id)
        pubsub = None
        try:
            client = await get_redis_pool()
            pubsub = client.pubsub()
            await pubsub.subscribe(channel)
            async for message in pubsub.listen():
                if message.get("type") == "message":
                    _offer(queue, message["data"])
        except (redis.RedisError, OSError) as e:
            logger.warning(
                "Redis location subscription lost, local delivery only",
                company_id=company_id,
                error=str(e),
            )
        finally:
            if pubsub is not None:
                with suppress(redis.RedisError, OSError):
                    await pubsub.unsubscribe(channel)
                    await pubsub.aclose()


def _offer(queue: asyncio.Queue[str], data: str) -> None:
    """Enqueue without blocking; a slow client loses its oldest update."""
    if queue.full():
        with suppress(asyncio.QueueEmpty):
            queue.get_nowait()
    queue.put_nowait(data)


# Process-wide broadcaster used by the API
location_broadcaster = LocationBroadcaster()


def get_location_broadcaster() -> LocationBroadcaster:
    """Dependency hook; tests override it with a local-only instance."""
    return location_broadcaster
