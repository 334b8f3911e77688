"""
Date range parsing for aggregation requests

An absent bound falls back to a documented default; a bound that is present
but unparseable is always an error naming the field.
"""
from datetime import date, datetime
from typing import Optional, Union

from ...core.config import DateSettings, get_config
from ...core.errors import InvalidArgumentError
from ...domain import DateRange

DateInput = Union[str, date, datetime, None]


def parse_date_bound(value: DateInput, field: str, default: date) -> date:
    """
    Parse one bound

    Args:
        value: "YYYY-MM-DD", an ISO datetime string, a date, or None/blank
        field: parameter name reported on failure (start_date / end_date)
        default: used only when the value is absent

    Raises:
        InvalidArgumentError: value present but not a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = (value or "").strip()
    if not raw:
        return default

    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        raise InvalidArgumentError(field, value) from None


def default_date_range(settings: Optional[DateSettings] = None, today: Optional[date] = None) -> DateRange:
    """Configured defaults, else the whole current calendar year."""
    settings = settings or get_config().dates
    year = (today or date.today()).year
    return DateRange(
        start=settings.default_start_date or date(year, 1, 1),
        end=settings.default_end_date or date(year, 12, 31),
    )


def resolve_date_range(
    start_date: DateInput = None,
    end_date: DateInput = None,
    settings: Optional[DateSettings] = None,
    today: Optional[date] = None,
) -> DateRange:
    defaults = default_date_range(settings, today)
    return DateRange(
        start=parse_date_bound(start_date, "start_date", defaults.start),
        end=parse_date_bound(end_date, "end_date", defaults.end),
    )
