"""HULLWORKS MES — Date-only helpers for planned start/finish dates.

Planned dates are calendar days. They are stored as UTC-midnight timestamps
and rendered back as ``YYYY-MM-DD``.
"""
import re
from datetime import date, datetime, time, timezone

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _utc_midnight(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return datetime.combine(value.date(), time.min, tzinfo=timezone.utc)


def _parse_iso(value: str) -> datetime:
    # fromisoformat() on older interpreters rejects a trailing "Z"
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def parse_date_only_to_utc(date_string: str) -> datetime:
    """Parse ``YYYY-MM-DD`` into a UTC-midnight datetime. Raises ValueError otherwise."""
    if not DATE_ONLY_REGEX.match(date_string):
        raise ValueError(f"Invalid date-only value: {date_string}")
    parsed = date.fromisoformat(date_string)
    return datetime.combine(parsed, time.min, tzinfo=timezone.utc)


def normalize_date_input(value: str | datetime | date | None) -> datetime | None:
    """Normalize any accepted date input to UTC midnight; empty input yields None."""
    if not value:
        return None

    if isinstance(value, datetime):
        return _utc_midnight(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    if isinstance(value, str):
        if DATE_ONLY_REGEX.match(value):
            return parse_date_only_to_utc(value)
        try:
            parsed = _parse_iso(value)
        except ValueError as exc:
            raise ValueError(f"Unable to parse date value: {value}") from exc
        return _utc_midnight(parsed)

    raise ValueError("Unsupported date input")


def format_date_only(value: str | datetime | date | None) -> str | None:
    if not value:
        return None

    if isinstance(value, str):
        if DATE_ONLY_REGEX.match(value):
            return value
        try:
            parsed = _parse_iso(value)
        except ValueError as exc:
            raise ValueError(f"Unable to format date value: {value}") from exc
        return _utc_midnight(parsed).date().isoformat()

    if isinstance(value, datetime):
        return _utc_midnight(value).date().isoformat()

    return value.isoformat()
