"""Values, cells and column specifications.

Every piece of data stored by a :class:`~chartdata.data.DataTable`
is a *value* wrapped in a :class:`Cell`. Values are plain Python
objects and the type of a column decides which of them are accepted:

============  ===============================================
Column type   Accepted values
============  ===============================================
string        :class:`str`
number        :class:`int` or :class:`float` (never :class:`bool`)
boolean       :class:`bool`
date          :class:`datetime.date`
datetime      :class:`datetime.date` (stored as :class:`datetime.datetime`)
timeofday     list of 1 to 7 non-negative ints ``[h, m, s, ms]``
function      any callable
============  ===============================================

``None`` is a valid value for every column type and
represents a missing value.

>>> check_value_type(3, ColumnType.NUMBER)
True
>>> check_value_type(True, ColumnType.NUMBER)
False
>>> infer_type_of_value([10, 30])
'timeofday'
"""

import datetime
import enum
import math
from dataclasses import dataclass, field
from typing import Any

from ..errors import TypeMismatchError

__all__ = (
    "ColumnType",
    "ResponseVersion",
    "Cell",
    "Row",
    "ColumnSpec",
    "check_value_type",
    "infer_type_of_value",
    "is_timeofday",
    "normalize_value",
    "parse_cell",
)

Value = Any
Properties = dict[str, Any]


class ColumnType(enum.StrEnum):
    """The type of the values stored in a column."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMEOFDAY = "timeofday"
    FUNCTION = "function"


COLUMN_TYPES = frozenset(column_type.value for column_type in ColumnType)


class ResponseVersion(enum.StrEnum):
    """Wire format versions understood by the data table."""

    VERSION_0_5 = "0.5"
    VERSION_0_6 = "0.6"


@dataclass
class Cell:
    """A single value of the table with its optional formatting and properties.

    :param v: The value of the cell.
    :param f: The formatted representation of the value, if any.
    :param p: Arbitrary properties attached to the cell.
    """

    v: Value = None
    f: str | None = None
    p: Properties | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation of the cell, omitting unset members."""
        result: dict[str, Any] = {"v": self.v}
        if self.f is not None:
            result["f"] = self.f
        if self.p is not None:
            result["p"] = self.p
        return result


@dataclass
class Row:
    """A row of cells, one for each column of the table."""

    c: list[Cell] = field(default_factory=list)
    p: Properties | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"c": [cell.to_dict() for cell in self.c]}
        if self.p is not None:
            result["p"] = self.p
        return result


@dataclass
class ColumnSpec:
    """Description of a column of the table."""

    type: str = ColumnType.STRING.value
    id: str = ""
    label: str = ""
    pattern: str | None = None
    p: Properties | None = None

    @property
    def role(self) -> str:
        """The role of the column, as stored in its properties."""
        if self.p is None:
            return ""
        return str(self.p.get("role") or "")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "type": self.type,
        }
        if self.pattern is not None:
            result["pattern"] = self.pattern
        if self.p is not None:
            result["p"] = self.p
        return result


def is_timeofday(value: Value) -> bool:
    """Check if a value is a time of day, like ``[13, 30, 0]``."""
    if not isinstance(value, (list, tuple)) or not 1 <= len(value) <= 7:
        return False
    return all(
        isinstance(part, int) and not isinstance(part, bool) and part >= 0
        for part in value
    )


def check_value_type(value: Value, column_type: str) -> bool:
    """Check if a value can be stored in a column of the given type.

    ``None`` is accepted by every type.
    """
    if value is None:
        return True
    if column_type == ColumnType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    elif column_type == ColumnType.STRING:
        return isinstance(value, str)
    elif column_type == ColumnType.BOOLEAN:
        return isinstance(value, bool)
    elif column_type in (ColumnType.DATE, ColumnType.DATETIME):
        return isinstance(value, datetime.date)
    elif column_type == ColumnType.TIMEOFDAY:
        return is_timeofday(value)
    elif column_type == ColumnType.FUNCTION:
        return callable(value)
    return False


def normalize_value(value: Value, column_type: str) -> Value:
    """Convert an accepted value to the form stored by the column.

    Datetime columns store plain dates as midnight datetimes,
    so that all the values of a column compare with each other.
    Timeofday tuples are stored as lists.
    """
    if column_type == ColumnType.DATETIME and type(value) is datetime.date:
        return datetime.datetime.combine(value, datetime.time())
    if column_type == ColumnType.TIMEOFDAY and isinstance(value, tuple):
        return list(value)
    return value


def infer_type_of_value(value: Value) -> str:
    """Guess the column type that would store the given value.

    Datetimes at midnight are reported as ``date``,
    ``None`` and unknown values as ``string``.
    """
    if isinstance(value, bool):
        return ColumnType.BOOLEAN.value
    elif isinstance(value, (int, float)):
        return ColumnType.NUMBER.value
    elif isinstance(value, datetime.datetime):
        if value.time() == datetime.time():
            return ColumnType.DATE.value
        return ColumnType.DATETIME.value
    elif isinstance(value, datetime.date):
        return ColumnType.DATE.value
    elif is_timeofday(value):
        return ColumnType.TIMEOFDAY.value
    elif callable(value):
        return ColumnType.FUNCTION.value
    return ColumnType.STRING.value


def is_number(value: Value) -> bool:
    """Check if a value is a finite or infinite number, but not a bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str) -> float | int | None:
    """Parse a string holding a number, returns ``None`` if not numeric."""
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isfinite(number) and number.is_integer() and "." not in text:
        return int(number)
    return number


def parse_cell(cell: Any) -> Cell:
    """Build a :class:`Cell` out of what users provide as a cell.

    Accepts a :class:`Cell`, a dictionary with the optional
    ``v``, ``f`` and ``p`` keys, or a bare value.

    >>> parse_cell({"v": 3, "f": "three"})
    Cell(v=3, f='three', p=None)
    >>> parse_cell("hello")
    Cell(v='hello', f=None, p=None)
    """
    if isinstance(cell, Cell):
        value, formatted, properties = cell.v, cell.f, cell.p
    elif isinstance(cell, dict):
        value, formatted, properties = cell.get("v"), cell.get("f"), cell.get("p")
    else:
        return Cell(v=cell)

    if formatted is not None and not isinstance(formatted, str):
        raise TypeMismatchError("Formatted value ('f'), if specified, must be a string.")
    if properties is not None and not isinstance(properties, dict):
        raise TypeMismatchError("Properties ('p'), if specified, must be a dictionary.")
    return Cell(v=value, f=formatted, p=properties)
