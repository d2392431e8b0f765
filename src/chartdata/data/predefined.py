"""Functions available by name to the computed columns of a view.

A computed column of a :class:`~chartdata.data.DataView` can
refer to one of these functions through its ``calc`` name
instead of providing a callable::

    view.set_columns([0, {"calc": "stringify", "sourceColumn": 1, "type": "string"}])

Each function is invoked with the object wrapped by the view,
the index of the row in that object, and the computed column
itself, which carries the options of the function
(``source_column``, ``magnitude``, ``error_type``, ``mapping``).

The registry is read only, new names can't be added at runtime.
"""

import types
from typing import TYPE_CHECKING, Any, Callable

from .types import is_number

if TYPE_CHECKING:
    from .base import AbstractDataTable
    from .dataview import ComputedColumn

__all__ = ("PREDEFINED_FUNCTIONS", "find_non_null_value_in_column")


def find_non_null_value_in_column(
    data: "AbstractDataTable", row_index: int, column_index: int, above: bool
) -> Any:
    """Find the closest non null value of a column starting at ``row_index``.

    The row itself is checked first, then rows above it
    (or below it when ``above`` is false).
    Returns ``None`` if there is no such value.
    """
    step = -1 if above else 1
    stop = -1 if above else data.get_number_of_rows()
    for index in range(row_index, stop, step):
        value = data.get_value(index, column_index)
        if value is not None:
            return value
    return None


def empty_string(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> str:
    return ""


def error(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> float | None:
    """The value of the source column offset by ``magnitude``.

    With ``error_type="percent"`` the magnitude is a percentage
    of the value, otherwise it's a constant added to it.
    """
    if not isinstance(column.source_column, int) or not is_number(column.magnitude):
        return None
    value = data.get_value(row, column.source_column)
    if not is_number(value):
        return None
    if column.error_type == "percent":
        return value + value * (column.magnitude / 100)
    return value + column.magnitude


def stringify(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> str:
    """The formatted value of the source column."""
    if not isinstance(column.source_column, int):
        return ""
    return data.get_formatted_value(row, column.source_column)


def map_from_source(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> Any:
    """Lookup the value of the source column in ``mapping``."""
    if isinstance(column.source_column, int) and column.mapping:
        key = data.get_value(row, column.source_column)
        if isinstance(key, str):
            return column.mapping.get(key)
    return None


def fill_from_top(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> Any:
    """Replace missing values with the closest value above them."""
    if not isinstance(column.source_column, int):
        return None
    return find_non_null_value_in_column(data, row, column.source_column, above=True)


def fill_from_bottom(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> Any:
    """Replace missing values with the closest value below them."""
    if not isinstance(column.source_column, int):
        return None
    return find_non_null_value_in_column(data, row, column.source_column, above=False)


def identity(data: "AbstractDataTable", row: int, column: "ComputedColumn") -> Any:
    """The value of the source column, unchanged."""
    if not isinstance(column.source_column, int):
        return None
    return data.get_value(row, column.source_column)


PredefinedFunction = Callable[["AbstractDataTable", int, "ComputedColumn"], Any]

PREDEFINED_FUNCTIONS: types.MappingProxyType[str, PredefinedFunction] = (
    types.MappingProxyType(
        {
            "emptyString": empty_string,
            "error": error,
            "mapFromSource": map_from_source,
            "stringify": stringify,
            "fillFromTop": fill_from_top,
            "fillFromBottom": fill_from_bottom,
            "identity": identity,
        }
    )
)
