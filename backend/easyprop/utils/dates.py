from datetime import date, datetime, timezone
from typing import Any, Optional


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce an export or request timestamp to a naive UTC datetime.

    Accepts datetime/date objects, ISO 8601 strings (a trailing ``Z`` is
    allowed) and epoch milliseconds. Returns None for empty or unparseable
    input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value) if value.tzinfo else value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _to_naive_utc(parsed) if parsed.tzinfo else parsed


def _to_naive_utc(value: datetime) -> datetime:
    return (value - value.utcoffset()).replace(tzinfo=None)
