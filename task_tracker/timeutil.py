"""Timestamp parsing shared by the handler and the SQL backend."""

from __future__ import annotations

from datetime import date, datetime, time, timezone


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 value into an aware datetime, or None if it isn't one.

    A bare ``YYYY-MM-DD`` is midnight UTC; a date-time without an offset is
    read in the server's local zone. A trailing ``Z`` means UTC.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None

    if len(raw) == 10:
        try:
            return datetime.combine(date.fromisoformat(raw), time(), tzinfo=timezone.utc)
        except ValueError:
            return None

    if raw[-1] in "zZ":
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc)
