"""Timezone utilities.

Single source of truth for timestamp parsing and formatting.
Everything is stored and compared in UTC; providers send ISO-8601 strings
("2025-05-11T14:00:00Z") and the database stores the same format.
"""

from datetime import UTC, date, datetime

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime",
    "parse_date",
    "format_datetime",
    "format_date",
]


def now_utc() -> datetime:
    """Get current time in UTC."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the trailing "Z" form used by providers. Returns None for
    empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_date(value: str | date | None) -> date | None:
    """Parse a YYYY-MM-DD date (or the date part of a timestamp)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def format_datetime(dt: datetime | None) -> str | None:
    """Format a datetime for storage ("YYYY-MM-DDTHH:MM:SSZ")."""
    if dt is None:
        return None
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_date(d: date | None) -> str | None:
    """Format a date for storage ("YYYY-MM-DD")."""
    if d is None:
        return None
    return d.isoformat()
