"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a PostgREST timestamp into an aware datetime (naive values are UTC)."""
    if not value:
        return None

    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(normalized)
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def elapsed_label(started_at: str | datetime | None, ended_at: str | datetime | None = None) -> str:
    """Format how long a round or election has been running, e.g. ``1h 05m``."""
    start = parse_timestamp(started_at)
    if start is None:
        return "not started"

    end = parse_timestamp(ended_at) or now_utc()
    total_minutes = max(0, int((end - start).total_seconds() // 60))
    if total_minutes < 60:
        return f"{total_minutes}m"

    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes:02d}m"
