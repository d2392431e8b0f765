"""Default stringification of values.

When a cell has no explicit formatted value, tables compute
one based on the type of its column. The rendering is locale
free and deterministic, so the same value always produces
the same text:

>>> import datetime
>>> format_value(1234567.891, "number")
'1,234,567.891'
>>> format_value(datetime.date(2009, 8, 1), "date")
'Aug 1, 2009'
>>> format_value(datetime.datetime(2000, 5, 5, 17, 20, 30), "datetime")
'May 5, 2000, 5:20:30 PM'
>>> format_value([9, 5], "timeofday")
'09:05'
>>> format_value(None, "string")
''
"""

import datetime
import math
from typing import Any, Callable

from .types import ColumnType

__all__ = ("format_value", "format_number", "format_date", "format_timeofday")

Formatter = Callable[[Any], str]

MONTH_NAMES = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def format_number(value: int | float) -> str:
    """Thousands grouped, with up to three decimal digits.

    >>> format_number(1000.5)
    '1,000.5'
    >>> format_number(float("-inf"))
    '-∞'
    """
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "∞" if value > 0 else "-∞"
        value = round(value, 3)
        if value == 0:
            # avoid rendering "-0"
            value = 0.0
        text = f"{value:,.3f}".rstrip("0").rstrip(".")
        return text
    return f"{value:,}"


def format_timeofday(value: list[int]) -> str:
    """Render as ``HH:mm`` growing to ``HH:mm:ss`` and ``HH:mm:ss.SSS`` when needed.

    Seconds are shown when either seconds or milliseconds
    are not zero, milliseconds only when they are not zero.

    >>> format_timeofday([0, 0, 1, 100])
    '00:00:01.100'
    >>> format_timeofday([0, 0, 0, 5])
    '00:00:00.005'
    """
    hours, minutes, seconds, milliseconds = (list(value) + [0, 0, 0, 0])[:4]
    text = f"{hours:02d}:{minutes:02d}"
    if seconds or milliseconds:
        text += f":{seconds:02d}"
    if milliseconds:
        text += f".{milliseconds:03d}"
    return text


def format_date(value: datetime.date, with_time: bool = False) -> str:
    """Medium form of a date, like ``Aug 1, 2009``.

    When ``with_time`` is set the time is appended
    using a 12 hours clock, like ``Aug 1, 2009, 5:20:30 PM``.
    """
    text = f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"
    if with_time:
        if isinstance(value, datetime.datetime):
            hour, minute, second = value.hour, value.minute, value.second
        else:
            hour = minute = second = 0
        suffix = "AM" if hour < 12 else "PM"
        text += f", {hour % 12 or 12}:{minute:02d}:{second:02d} {suffix}"
    return text


def format_value(value: Any, column_type: str) -> str:
    """Compute the default formatted value for a value of the given column type."""
    if value is None:
        return ""
    if column_type == ColumnType.NUMBER and isinstance(value, (int, float)):
        return format_number(value)
    elif column_type == ColumnType.BOOLEAN or isinstance(value, bool):
        return "true" if value else "false"
    elif column_type == ColumnType.TIMEOFDAY and isinstance(value, (list, tuple)):
        return format_timeofday(value)
    elif column_type == ColumnType.DATE and isinstance(value, datetime.date):
        return format_date(value)
    elif column_type == ColumnType.DATETIME and isinstance(value, datetime.date):
        return format_date(value, with_time=True)
    return str(value)
