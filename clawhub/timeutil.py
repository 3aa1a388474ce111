"""Epoch-millisecond time helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], int]

MS_PER_DAY = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""

    return int(datetime.now(timezone.utc).timestamp() * 1000)


def to_ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


def parse_iso8601_ms(value: str) -> int:
    """Parse an ISO-8601 timestamp into epoch milliseconds.

    A trailing ``Z`` is accepted on every interpreter version and timestamps
    without an offset are read as UTC. Raises :class:`ValueError` when the
    value cannot be parsed.
    """

    text = value.strip()
    if not text:
        raise ValueError("Timestamp must not be empty")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def format_ms(value: int | None) -> str:
    if value is None:
        return "never"
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S %Z")


__all__ = ["Clock", "MS_PER_DAY", "format_ms", "now_ms", "parse_iso8601_ms", "to_ms"]
