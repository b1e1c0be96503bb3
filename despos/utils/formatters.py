"""
Formatting utilities for dates and amounts returned by the API.
"""
import re
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional


# Calendar date, month and day possibly unpadded ("1990-01-5")
_DATE_ONLY = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$")


DateLike = Union[date, datetime, str, None]


def parse_calendar_date(value: DateLike) -> Optional[date]:
    """
    Convert a raw date representation into a calendar date.
    
    Accepts ``date``, ``datetime`` (timezone-aware values are converted to the
    local calendar first) and ISO-8601 strings. Empty values return None.
    
    Raises:
        ValueError: If the string is not a recognizable date
    """
    if value is None or value == '':
        return None
    
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    
    if isinstance(value, date):
        return value
    
    text = str(value).strip()
    # Plain "YYYY-MM-DD" is a calendar date, not a UTC instant
    if _DATE_ONLY.match(text):
        return datetime.strptime(text, '%Y-%m-%d').date()
    
    return parse_calendar_date(datetime.fromisoformat(text.replace('Z', '+00:00')))


def calendar_date(value: DateLike) -> Optional[str]:
    """
    Format a date as ``YYYY-MM-D``: month zero-padded, day of month not.
    
    Examples:
        calendar_date("1990-01-05") -> "1990-01-5"
        calendar_date(date(2024, 11, 23)) -> "2024-11-23"
        calendar_date(None) -> None
    """
    parsed = parse_calendar_date(value)
    if parsed is None:
        return None
    return f"{parsed.year}-{parsed.month:02d}-{parsed.day}"


def to_decimal(value: Union[int, float, Decimal, str, None], default: Decimal = Decimal('0')) -> Decimal:
    """
    Coerce a form/JSON value to Decimal.
    
    Raises:
        ValueError: If the value is not numeric
    """
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value).replace(',', '.'))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'Invalid amount: {value!r}')
