"""Type aware comparison and stable sorting of rows.

Sorting is driven by a *sort specification* which
can take multiple forms, all of them are normalized
by :func:`standardize_sort_columns` into a single
comparison function:

* a column reference, index or id/label, sorted ascending::

    table.get_sorted_rows(1)

* a dictionary with the column, the direction and an optional
  custom comparison function for the values::

    table.get_sorted_rows({"column": "price", "desc": True})

* a list of the previous two forms, where following columns
  are used to break ties of the preceding ones::

    table.get_sorted_rows([{"column": 0}, {"column": 2, "desc": True}])

* a comparison function receiving two row indices and
  returning a negative, zero or positive number::

    table.get_sorted_rows(lambda a, b: a - b)

Missing values (``None``) always sort before any other value
when the order is ascending.

The sort is always stable, rows that compare equal
preserve their original relative order.

>>> compare_values("number", None, 3)
-1
>>> compare_values("timeofday", [10, 30], [10, 30, 0, 0])
0
"""

import datetime
import functools
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from ..errors import InvalidSpecificationError, ShapeError
from .types import ColumnType
from .validation import validate_column_reference

if TYPE_CHECKING:
    from .base import AbstractDataTable

__all__ = (
    "compare_values",
    "standardize_sort_columns",
    "stable_sort",
    "get_sorted_rows",
)

T = TypeVar("T")
Comparator = Callable[[Any, Any], int]


def _normalize_for_comparison(column_type: str, value: Any) -> Any:
    if column_type == ColumnType.TIMEOFDAY:
        return tuple((list(value) + [0, 0, 0, 0])[:4])
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        # Allows comparing dates and datetimes mixed in the same column.
        return datetime.datetime.combine(value, datetime.time())
    return value


def compare_values(column_type: str, value1: Any, value2: Any) -> int:
    """Compare two values of a column of the given type.

    Returns ``-1``, ``0`` or ``1`` when ``value1`` is respectively
    less than, equal to or greater than ``value2``.

    ``None`` is smaller than any other value and equal to itself.
    Timeofday values are compared component by component,
    missing trailing components counting as ``0``.
    """
    if value1 is None:
        return 0 if value2 is None else -1
    if value2 is None:
        return 1
    value1 = _normalize_for_comparison(column_type, value1)
    value2 = _normalize_for_comparison(column_type, value2)
    if value1 < value2:
        return -1
    if value2 < value1:
        return 1
    return 0


def _standardize_sort_column(
    data: "AbstractDataTable", sort_column: Any, name: str
) -> dict[str, Any]:
    if isinstance(sort_column, (int, str)) and not isinstance(sort_column, bool):
        return {"column": validate_column_reference(data, sort_column)}
    if not isinstance(sort_column, dict):
        raise InvalidSpecificationError(
            f"{name} must be a column reference or a dictionary, got {sort_column!r}."
        )
    if "column" not in sort_column:
        raise InvalidSpecificationError(f'{name} must have a property "column".')
    desc = sort_column.get("desc", False)
    if not isinstance(desc, bool):
        raise InvalidSpecificationError(f'Property "desc" in {name} must be boolean.')
    compare = sort_column.get("compare")
    if compare is not None and not callable(compare):
        raise InvalidSpecificationError(
            f'Property "compare" in {name} must be a function.'
        )
    return {
        "column": validate_column_reference(data, sort_column["column"]),
        "desc": desc,
        "compare": compare,
    }


def standardize_sort_columns(
    data: "AbstractDataTable",
    get_value: Callable[[T, int], Any],
    sort_columns: Any,
) -> Callable[[T, T], int]:
    """Build a comparison function out of a sort specification.

    :param data: The table or view the columns refer to.
    :param get_value: How to read the value of a column out of
                      the items that will be compared.
    :param sort_columns: The sort specification.
    """
    if callable(sort_columns):
        return sort_columns

    if isinstance(sort_columns, (list, tuple)):
        if not sort_columns:
            raise InvalidSpecificationError(
                "sort_columns is an empty list. Must have at least one element."
            )
        specs = [
            _standardize_sort_column(data, sort_column, f"sort_columns[{idx}]")
            for idx, sort_column in enumerate(sort_columns)
        ]
    else:
        specs = [_standardize_sort_column(data, sort_columns, "sort_columns")]

    seen_columns = set()
    for spec in specs:
        if spec["column"] in seen_columns:
            raise ShapeError(
                f"Column index {spec['column']} is duplicated in sort_columns."
            )
        seen_columns.add(spec["column"])

    column_types = {spec["column"]: data.get_column_type(spec["column"]) for spec in specs}

    def compare_items(item1: T, item2: T) -> int:
        for spec in specs:
            column = spec["column"]
            value1 = get_value(item1, column)
            value2 = get_value(item2, column)
            compare = spec.get("compare")
            if compare is not None and value1 is not None and value2 is not None:
                comparison = compare(value1, value2)
            else:
                comparison = compare_values(column_types[column], value1, value2)
            if comparison:
                return -comparison if spec.get("desc") else comparison
        return 0

    return compare_items


def stable_sort(items: list[T], compare: Callable[[T, T], int]) -> None:
    """Sort ``items`` in place with a comparison function.

    Python sort is already stable, but the original position
    is still used as the last tie breaker so that comparison
    functions not respecting ordering laws can't shuffle
    equal items around.
    """
    decorated = list(enumerate(items))

    def compare_decorated(a: tuple[int, T], b: tuple[int, T]) -> int:
        return compare(a[1], b[1]) or (a[0] - b[0])

    decorated.sort(key=functools.cmp_to_key(compare_decorated))
    items[:] = [item for _, item in decorated]


def get_sorted_rows(data: "AbstractDataTable", sort_columns: Any) -> list[int]:
    """Compute the order of the rows of ``data`` according to ``sort_columns``.

    The data is left untouched, the returned list contains
    the row indices in the sorted order.
    """
    compare = standardize_sort_columns(data, data.get_value, sort_columns)
    rows = list(range(data.get_number_of_rows()))
    stable_sort(rows, compare)
    return rows
