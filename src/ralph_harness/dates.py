"""Date helpers shared by the task and session layers."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone


def get_iso_timestamp(now: datetime | None = None) -> str:
    """Return ``now`` (default: current time) as UTC ISO-8601 with a ``+00:00`` offset."""

    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def get_next_hour_time() -> str:
    """Local wall-clock time one hour from now, ``HH:MM:SS``."""

    return (datetime.now() + timedelta(hours=1)).strftime("%H:%M:%S")


def get_basic_timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def get_epoch_seconds() -> int:
    return int(time.time())


def parse_iso_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string, accepting a trailing ``Z`` and treating naive values as UTC.

    Raises ``ValueError`` when the value cannot be parsed.
    """

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "get_basic_timestamp",
    "get_epoch_seconds",
    "get_iso_timestamp",
    "get_next_hour_time",
    "parse_iso_timestamp",
]
