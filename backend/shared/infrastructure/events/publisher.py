"""
Publishing company events to Redis.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis

from shared.config.logging import get_logger
from .event_schema import Event

logger = get_logger(__name__)

# Seconds to wait before each retry; a location update older than a second
# is superseded by the next one anyway
RETRY_DELAYS = (0.1, 0.3)


async def publish_event(client: redis.Redis, channel: str, event: Event) -> int:
    """
    Publish `event` on `channel` and return how many Redis subscribers got it.

    Transport errors are retried per RETRY_DELAYS; the last one propagates.
    EventTooLarge is raised before anything is sent.
    """
    message = event.to_json()

    for attempt, delay in enumerate((*RETRY_DELAYS, None), start=1):
        try:
            return await client.publish(channel, message)
        except (redis.RedisError, OSError) as e:
            if delay is None:
                logger.error(
                    "Redis publish gave up",
                    channel=channel,
                    company_id=event.company_id,
                    attempts=attempt,
                    error=str(e),
                )
                raise
            logger.warning(
                "Redis publish failed, retrying",
                channel=channel,
                company_id=event.company_id,
                attempt=attempt,
                error=str(e),
            )
            await asyncio.sleep(delay)
