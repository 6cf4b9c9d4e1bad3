from __future__ import annotations

import time
from collections import deque
from typing import Any

from ..config import DEFAULT_CONFIG

EVENT_TYPES = ("search", "roulette")

# Oldest events fall off once the log is full.
_events: deque[dict[str, Any]] = deque(maxlen=DEFAULT_CONFIG.max_events)


def record_event(event_type: str, data: dict[str, Any]) -> None:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    _events.append({
        "type": event_type,
        "timestamp": time.time(),
        **data,
    })


def get_events(event_type: str | None = None) -> list[dict[str, Any]]:
    if event_type is None:
        return list(_events)
    return [e for e in _events if e["type"] == event_type]


def clear_events() -> None:
    _events.clear()
