"""Timestamp helpers shared by the ledgers.

Every timestamp in the snapshot is an ISO-8601 string in UTC, and calendar
dates (``lastResetDate``) are ``YYYY-MM-DD`` strings of the UTC date.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat()


def to_date_string(moment: datetime) -> str:
    return moment.astimezone(UTC).date().isoformat()


def parse_iso(value: object) -> datetime | None:
    """Parse an ISO-8601 string, returning ``None`` for anything unusable.

    Naive values are treated as UTC.  A trailing ``Z`` (as written by
    JavaScript clients) is accepted.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
