"""
Redis pub/sub used to share location updates between API workers.
"""

from .channels import channel_company_locations
from .event_schema import MAX_EVENT_SIZE, Event, EventTooLarge
from .publisher import publish_event
from .redis_pool import check_redis_health, close_redis_pool, get_redis_pool

__all__ = [
    "Event",
    "EventTooLarge",
    "MAX_EVENT_SIZE",
    "channel_company_locations",
    "check_redis_health",
    "close_redis_pool",
    "get_redis_pool",
    "publish_event",
]
