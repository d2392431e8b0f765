"""JSON wire format of data tables.

Tables travel as JSON documents. JSON has no date type, so dates
and datetimes are written as string literals in the form
``"Date(year, month, day[, hours, minutes, seconds[, milliseconds]])"``
where ``month`` is zero based (January is ``0``)::

    {"cols": [{"id": "when", "label": "When", "type": "date"}],
     "rows": [{"c": [{"v": "Date(2009, 7, 1)"}]}]}

A literal with a single number, like ``"Date(1249084800000)"``,
is interpreted as milliseconds since the epoch in UTC.

Literals are recognized only when the whole string is exactly
a ``Date(...)`` call with numeric arguments. Nothing is ever
evaluated, any other string is left untouched.

>>> import datetime
>>> serialize({"v": datetime.date(2009, 8, 1)})
'{"v": "Date(2009, 7, 1)"}'
>>> deserialize('{"v": "Date(2009, 7, 1, 10, 30, 0)"}')
{'v': datetime.datetime(2009, 8, 1, 10, 30)}
>>> deserialize('{"v": "Date(alert(1))"}')
{'v': 'Date(alert(1))'}
"""

import datetime
import json
import re
from typing import Any

__all__ = (
    "serialize",
    "deserialize",
    "clone",
    "serialize_date",
    "deserialize_date",
)

DATE_LITERAL_RE = re.compile(r"^Date\(\s*([\d,\s]*)\)$")
EPOCH = datetime.datetime(1970, 1, 1)


def serialize(obj: Any) -> str:
    """Convert an object into its JSON text, writing dates as literals."""
    return json.dumps(clone(obj))


def deserialize(text: str) -> Any:
    """Parse JSON text, converting every date literal back into a date."""
    return revive_dates(json.loads(text))


def clone(obj: Any) -> Any:
    """Deep copy an object into plain JSON compatible structures.

    Dates are replaced by their ``Date(...)`` literal, objects
    providing a ``to_dict`` method are replaced by their dictionary.
    """
    if hasattr(obj, "to_dict"):
        obj = obj.to_dict()
    if isinstance(obj, datetime.date):
        return serialize_date(obj)
    elif isinstance(obj, dict):
        return {key: clone(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [clone(value) for value in obj]
    return obj


def revive_dates(obj: Any) -> Any:
    """Replace date literals found anywhere in ``obj`` with dates."""
    if isinstance(obj, str):
        return deserialize_date(obj)
    elif isinstance(obj, list):
        return [revive_dates(value) for value in obj]
    elif isinstance(obj, dict):
        return {key: revive_dates(value) for key, value in obj.items()}
    return obj


def serialize_date(value: datetime.date) -> str:
    """Write a date or datetime as a ``Date(...)`` literal.

    Only the components that carry information are written:
    three for dates at midnight, seven when there are milliseconds.

    >>> serialize_date(datetime.datetime(2000, 5, 5, 17, 20, 30, 250000))
    'Date(2000, 4, 5, 17, 20, 30, 250)'
    """
    parts = [value.year, value.month - 1, value.day]
    if isinstance(value, datetime.datetime):
        milliseconds = value.microsecond // 1000
        if milliseconds:
            parts += [value.hour, value.minute, value.second, milliseconds]
        elif value.hour or value.minute or value.second:
            parts += [value.hour, value.minute, value.second]
    return f"Date({', '.join(str(p) for p in parts)})"


def deserialize_date(text: str) -> str | datetime.date:
    """Convert a ``Date(...)`` literal into a date, other strings are returned as they are.

    Three or less components produce a :class:`datetime.date`,
    more components produce a :class:`datetime.datetime`.
    Components overflowing their range roll over into the
    next unit, so ``Date(2020, 12, 1)`` is January 1st 2021.
    """
    match = DATE_LITERAL_RE.match(text)
    if match is None:
        return text

    numbers = [int(n) if n.strip() else 0 for n in re.split(r",\s*", match.group(1))]
    if len(numbers) == 1:
        return EPOCH + datetime.timedelta(milliseconds=numbers[0])

    numbers += [0] * (7 - len(numbers))
    year, month, day, hours, minutes, seconds, milliseconds = numbers[:7]
    carry, month = divmod(month, 12)
    value = datetime.datetime(year + carry, month + 1, 1) + datetime.timedelta(
        days=(day or 1) - 1,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        milliseconds=milliseconds,
    )
    if len(match.group(1).split(",")) <= 3:
        return value.date()
    return value
