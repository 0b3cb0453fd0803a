"""
Envelope for messages on the company location channels.

    {"type": "LOCATION_UPDATED", "company_id": 3, "entity": {...}, "ts": "..."}

The same JSON string is what SSE clients receive in each `data:` frame.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

# Redis accepts far more, but a location frame is a few hundred bytes
MAX_EVENT_SIZE = 16 * 1024


class EventTooLarge(ValueError):
    pass


@dataclass(frozen=True)
class Event:
    type: str
    company_id: int
    entity: dict[str, Any] = field(default_factory=dict)
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("event type is required")
        if isinstance(self.company_id, bool) or not isinstance(self.company_id, int) or self.company_id <= 0:
            raise ValueError(f"invalid company_id for event: {self.company_id!r}")

    def to_json(self) -> str:
        """Serialize, refusing payloads above MAX_EVENT_SIZE."""
        encoded = json.dumps(asdict(self), ensure_ascii=False, default=str)
        if len(encoded.encode("utf-8")) > MAX_EVENT_SIZE:
            raise EventTooLarge(f"{self.type} event for company {self.company_id} is too large")
        return encoded
