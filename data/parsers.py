"""Cell value parsers.

Every cell comes back from the store as a string (or is missing entirely in a
ragged row); readers run each cell through one of these before it lands on a
record.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_string(value: Any) -> str:
    """Trimmed string; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a cell into an aware UTC datetime, or None when it is not a date."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = parse_string(value)
        if not text:
            return None
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_date(value: Any) -> Optional[str]:
    """Normalise a date cell to an ISO-8601 UTC string (None if blank or unparseable)."""
    if not parse_string(value):
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        logger.warning("Unparseable date value: %r", value)
        return None
    return parsed.isoformat()


def parse_int_safe(value: Any, default: int = 0) -> int:
    try:
        return int(parse_string(value))
    except ValueError:
        return default


def parse_float_safe(value: Any, default: float = 0.0) -> float:
    """Parse an amount, tolerating currency symbols and thousands separators."""
    if isinstance(value, (int, float)):
        return float(value)
    text = parse_string(value).replace("$", "").replace(",", "")
    try:
        return float(text)
    except ValueError:
        return default


def cell(row: Sequence[Any], index: int) -> str:
    """Trimmed cell at ``index`` of a ragged row."""
    return parse_string(row[index]) if index < len(row) else ""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def newest_first(items: Iterable[T], date_of: Callable[[T], Any]) -> List[T]:
    """Sort by a date attribute, newest first; unparseable dates sink to the end."""
    return sorted(items, key=lambda item: parse_datetime(date_of(item)) or _OLDEST, reverse=True)


def blank(value: Any) -> Any:
    """None -> '' for row formatting; everything else passes through."""
    return "" if value is None else value


def normalize_key(value: Any) -> str:
    """Case- and whitespace-insensitive join key for denormalised names."""
    return parse_string(value).lower()
