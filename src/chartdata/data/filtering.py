"""Row filtering and column statistics.

Rows can be filtered with a predicate function
receiving the data and the row index::

    table.get_filtered_rows(lambda data, row: data.get_value(row, 0) > 10)

or with a list of column clauses, all of which
must match for the row to be selected::

    table.get_filtered_rows([
        {"column": "city", "value": "Rome"},
        {"column": "population", "min_value": 1000, "max_value": 5000},
        {"column": "name", "test": lambda value, row, column, data: value.startswith("B")},
    ])

A clause matches exactly one ``value`` or a ``min_value``/``max_value``
range (bounds are inclusive and a range never matches missing values),
optionally combined with a ``test`` function.
The ``minValue`` and ``maxValue`` spellings of the wire format
are accepted too.
"""

from typing import TYPE_CHECKING, Any, Callable

from ..errors import InvalidSpecificationError, ShapeError
from .sorting import compare_values, stable_sort
from .validation import validate_column_reference, validate_type_match

if TYPE_CHECKING:
    from .base import AbstractDataTable, ColumnRef

__all__ = (
    "validate_column_filters",
    "get_filtered_rows",
    "get_column_range",
    "get_distinct_values",
)

FilterFunction = Callable[["AbstractDataTable", int], bool]

_MISSING = object()
_ALIASES = {"minValue": "min_value", "maxValue": "max_value"}


def _standardize_clause(clause: Any, name: str) -> dict[str, Any]:
    if not isinstance(clause, dict) or "column" not in clause:
        raise InvalidSpecificationError(f'{name} must have a property "column".')
    clause = {_ALIASES.get(key, key): value for key, value in clause.items()}
    has_value = "value" in clause
    has_range = (
        clause.get("min_value") is not None or clause.get("max_value") is not None
    )
    if not (has_value or has_range or clause.get("test") is not None):
        raise InvalidSpecificationError(
            f'{name} must have one of the properties "value", "min_value", '
            '"max_value" or "test".'
        )
    if has_value and has_range:
        raise InvalidSpecificationError(
            f'{name} must specify either "value" or range properties '
            '("min_value" and/or "max_value").'
        )
    test = clause.get("test")
    if test is not None and not callable(test):
        raise InvalidSpecificationError(f'Property "test" in {name} must be a function.')
    return clause


def validate_column_filters(
    data: "AbstractDataTable", column_filters: Any
) -> list[dict[str, Any]] | FilterFunction:
    """Validate a filter specification and return its normalized form.

    Clauses are returned with their column resolved to an index.
    """
    if callable(column_filters):
        return column_filters
    if not isinstance(column_filters, (list, tuple)) or not column_filters:
        raise InvalidSpecificationError("column_filters must be a non-empty list.")

    clauses = []
    seen_columns = set()
    for idx, clause in enumerate(column_filters):
        clause = _standardize_clause(clause, f"column_filters[{idx}]")
        column_index = validate_column_reference(data, clause["column"])
        if column_index in seen_columns:
            raise ShapeError(
                f"Column {clause['column']!r} is duplicate in column_filters."
            )
        seen_columns.add(column_index)
        if "value" in clause:
            validate_type_match(data, column_index, clause["value"])
        clause["column"] = column_index
        clauses.append(clause)
    return clauses


def _is_match(data: "AbstractDataTable", clauses: list[dict[str, Any]], row: int) -> bool:
    for clause in clauses:
        column_index = clause["column"]
        value = data.get_value(row, column_index)
        column_type = data.get_column_type(column_index)
        min_value = clause.get("min_value")
        max_value = clause.get("max_value")
        if "value" in clause:
            if compare_values(column_type, value, clause["value"]) != 0:
                return False
        elif min_value is not None or max_value is not None:
            if value is None:
                return False
            if min_value is not None and compare_values(column_type, value, min_value) < 0:
                return False
            if max_value is not None and compare_values(column_type, value, max_value) > 0:
                return False
        test = clause.get("test")
        if test is not None and not test(value, row, column_index, data):
            return False
    return True


def get_filtered_rows(data: "AbstractDataTable", column_filters: Any) -> list[int]:
    """Indices of the rows of ``data`` that match the filters, in ascending order."""
    filters = validate_column_filters(data, column_filters)
    number_of_rows = data.get_number_of_rows()
    if callable(filters):
        return [row for row in range(number_of_rows) if filters(data, row)]
    return [row for row in range(number_of_rows) if _is_match(data, filters, row)]


def get_column_range(data: "AbstractDataTable", column: "ColumnRef") -> dict[str, Any]:
    """Minimum and maximum values of a column, ignoring missing values.

    Returns ``{"min": None, "max": None}`` when the column
    has no values at all.
    """
    column_index = validate_column_reference(data, column)
    column_type = data.get_column_type(column_index)
    minimum = maximum = None
    for row in range(data.get_number_of_rows()):
        value = data.get_value(row, column_index)
        if value is None:
            continue
        if minimum is None or compare_values(column_type, value, minimum) < 0:
            minimum = value
        if maximum is None or compare_values(column_type, maximum, value) < 0:
            maximum = value
    return {"min": minimum, "max": maximum}


def get_distinct_values(data: "AbstractDataTable", column: "ColumnRef") -> list[Any]:
    """Sorted distinct values of a column.

    ``None`` is reported once, as the first entry,
    when the column has missing values.
    """
    column_index = validate_column_reference(data, column)
    column_type = data.get_column_type(column_index)
    values = [
        data.get_value(row, column_index) for row in range(data.get_number_of_rows())
    ]
    stable_sort(values, lambda a, b: compare_values(column_type, a, b))

    distinct: list[Any] = []
    previous: Any = _MISSING
    for value in values:
        if previous is _MISSING or compare_values(column_type, value, previous) != 0:
            distinct.append(value)
        previous = value
    return distinct
