"""
Weekly availability flag.

This is a weekday-presence check, not an opening-hours evaluator: a place
counts as open "now" when its schedule has a non-empty entry for today's
weekday name. The time-range strings themselves are never parsed. Callers
and tests depend on this behaviour, so a real interval check would have to
be introduced as a separate capability.
"""
from __future__ import annotations

from datetime import datetime

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def weekday_name(now: datetime) -> str:
    # Fixed English names; strftime("%A") follows the process locale.
    return WEEKDAYS[now.weekday()]


def is_open_now(schedule: dict[str, list[str]], now: datetime) -> bool:
    return bool(schedule.get(weekday_name(now)))


def open_status(schedule: dict[str, list[str]] | None, now: datetime) -> bool | None:
    """Return ``None`` (unknown) when the place has no schedule at all."""
    if schedule is None:
        return None
    return is_open_now(schedule, now)
