"""Day Keys - Pure functions for bucketing records by local calendar day.

All functions are pure: same input always produces same output, no side effects.
The device's local time zone decides which calendar day an instant falls on.
"""

import re
from datetime import date, datetime
from typing import Any, Iterable, Sequence, TypeVar

T = TypeVar("T")

DAY_KEY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def local_date_key(value: date | datetime) -> str:
    """Build a YYYY-MM-DD key from a date or datetime.

    Aware datetimes are converted to local time first; naive ones are
    taken to be local already.
    """
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _parse_datetime(text: str) -> datetime | None:
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def to_day_key(timestamp: Any) -> str:
    """Normalize a timestamp to a local YYYY-MM-DD day key.

    A bare date string is returned unchanged so that a date-only value is
    never shifted by a time zone. Anything that cannot be parsed yields an
    empty string, which never matches any day.

    Args:
        timestamp: ISO date-time string, date-only string, date, datetime,
            or epoch milliseconds

    Returns:
        Day key, or "" for empty or malformed input
    """
    if timestamp is None or isinstance(timestamp, bool):
        return ""
    if isinstance(timestamp, (date, datetime)):
        return local_date_key(timestamp)
    if isinstance(timestamp, (int, float)):
        try:
            return local_date_key(datetime.fromtimestamp(timestamp / 1000))
        except (OverflowError, OSError, ValueError):
            return ""
    if not isinstance(timestamp, str) or not timestamp.strip():
        return ""
    if DAY_KEY_PATTERN.fullmatch(timestamp):
        return timestamp

    parsed = _parse_datetime(timestamp)
    if parsed is None:
        return ""
    return local_date_key(parsed)


def build_local_iso(day: date | str, time_str: str = "09:00") -> str:
    """Build a local timestamp string for a back-dated entry.

    Args:
        day: The calendar day (date or day key)
        time_str: Time of day as HH:MM

    Returns:
        String like "2026-02-19T09:00:00"
    """
    day_key = day if isinstance(day, str) else local_date_key(day)
    return f"{day_key}T{time_str}:00"


def _field_value(record: Any, field: str) -> Any:
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


def entries_for_day(records: Iterable[T], day_key: str, field: str) -> list[T]:
    """Filter records whose timestamp field falls on the given day.

    Args:
        records: Records (models or dicts)
        day_key: Target YYYY-MM-DD key
        field: Name of the timestamp field on each record

    Returns:
        Matching records in their original order
    """
    if not day_key:
        return []
    return [r for r in records if to_day_key(_field_value(r, field)) == day_key]


def group_by_day(records: Sequence[T], field: str) -> dict[str, list[T]]:
    """Bucket records by day key, newest day first.

    Records with a malformed timestamp are left out.
    """
    grouped: dict[str, list[T]] = {}
    for record in records:
        key = to_day_key(_field_value(record, field))
        if not key:
            continue
        grouped.setdefault(key, []).append(record)
    return {key: grouped[key] for key in sorted(grouped, reverse=True)}
