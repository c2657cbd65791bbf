"""Time helper tests."""

from __future__ import annotations

from datetime import UTC, datetime

from app.utils.time import elapsed_label, parse_timestamp


def test_parse_timestamp_handles_zulu_and_naive_values() -> None:
    """PostgREST timestamps should parse into aware UTC datetimes."""
    expected = datetime(2026, 2, 7, 18, 30, tzinfo=UTC)
    assert parse_timestamp("2026-02-07T18:30:00Z") == expected
    assert parse_timestamp("2026-02-07T18:30:00") == expected
    assert parse_timestamp(None) is None


def test_elapsed_label_formats_minutes_and_hours() -> None:
    """Short rounds show minutes; long ones show hours and padded minutes."""
    assert elapsed_label("2026-02-07T18:00:00Z", "2026-02-07T18:42:10Z") == "42m"
    assert elapsed_label("2026-02-07T18:00:00Z", "2026-02-07T19:05:00Z") == "1h 05m"
    assert elapsed_label(None) == "not started"
