"""
Database sessions (db.py), Redis fan-out of location updates (events/) and
request IDs (correlation.py).
"""

from shared.infrastructure.db import SessionLocal, engine, get_db, safe_commit
from shared.infrastructure.events import close_redis_pool, get_redis_pool, publish_event

__all__ = [
    "SessionLocal",
    "engine",
    "get_db",
    "safe_commit",
    "close_redis_pool",
    "get_redis_pool",
    "publish_event",
]
