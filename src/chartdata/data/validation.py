"""Checks shared by tables and views.

All the validators raise one of the :mod:`chartdata.errors`
exceptions when the check fails and return nothing
(or the resolved index) when it succeeds.
"""

from typing import TYPE_CHECKING, Any

from ..errors import InvalidIndexError, InvalidSpecificationError, TypeMismatchError
from .predefined import PREDEFINED_FUNCTIONS
from .types import check_value_type

if TYPE_CHECKING:
    from .base import AbstractDataTable, ColumnRef


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_row_index(data: "AbstractDataTable", row_index: int) -> None:
    """Check that ``row_index`` points to an existing row of ``data``."""
    number_of_rows = data.get_number_of_rows()
    if number_of_rows == 0:
        raise InvalidIndexError("Table has no rows.")
    if not _is_index(row_index) or not 0 <= row_index < number_of_rows:
        raise InvalidIndexError(
            f"Invalid row index {row_index!r}. Should be in the range [0-{number_of_rows - 1}]."
        )


def validate_column_index(data: "AbstractDataTable", column_index: int) -> None:
    """Check that ``column_index`` points to an existing column of ``data``."""
    number_of_columns = data.get_number_of_columns()
    if number_of_columns == 0:
        raise InvalidIndexError("Table has no columns.")
    if not _is_index(column_index) or not 0 <= column_index < number_of_columns:
        raise InvalidIndexError(
            f"Invalid column index {column_index!r}. "
            f"Should be an integer in the range [0-{number_of_columns - 1}]."
        )


def validate_column_reference(data: "AbstractDataTable", column: "ColumnRef") -> int:
    """Resolve a column index, id or label to the index of the column.

    Raises :class:`~chartdata.errors.InvalidIndexError`
    if the column does not exist.
    """
    if isinstance(column, str):
        index = data.get_column_index(column)
        if index == -1:
            raise InvalidIndexError(f'Invalid column id "{column}"')
        return index
    validate_column_index(data, column)
    return column


def validate_type_match(data: "AbstractDataTable", column_index: int, value: Any) -> None:
    """Check that ``value`` can be stored in the given column."""
    column_type = data.get_column_type(column_index)
    if not check_value_type(value, column_type):
        raise TypeMismatchError(
            f"Type mismatch. Value {value!r} does not match type {column_type} "
            f"in column index {column_index}"
        )


def validate_column_set(data: "AbstractDataTable", columns: list[Any]) -> None:
    """Check the column selection of a view.

    Each entry must be a column reference into ``data``
    or a computed column description: a dictionary with
    a ``calc`` that is either the name of a predefined
    function or a callable. Callables require an explicit ``type``.
    """
    if not isinstance(columns, (list, tuple)):
        raise InvalidSpecificationError("Columns must be a list of column references.")
    for column in columns:
        if isinstance(column, (int, str)) and not isinstance(column, bool):
            validate_column_reference(data, column)
            continue
        if not isinstance(column, dict):
            raise InvalidSpecificationError(f"Invalid column specification {column!r}.")
        calc = column.get("calc")
        source_column = column.get("sourceColumn", column.get("source_column"))
        if source_column is not None:
            validate_column_reference(data, source_column)
        if calc is None:
            if source_column is None:
                raise InvalidSpecificationError(
                    f"Computed column {column!r} needs a calc or a sourceColumn."
                )
        elif isinstance(calc, str):
            if calc not in PREDEFINED_FUNCTIONS:
                raise InvalidSpecificationError(f'Unknown function "{calc}"')
        elif callable(calc):
            if not column.get("type"):
                raise InvalidSpecificationError(
                    '"type" must be specified for columns computed by a function.'
                )
        else:
            raise InvalidSpecificationError(f"Invalid calc {calc!r}.")


def validate_row_indices(data: "AbstractDataTable", rows: list[int]) -> None:
    """Check that every entry of ``rows`` is a valid row index of ``data``."""
    if not isinstance(rows, (list, tuple)):
        raise InvalidSpecificationError("Rows must be a list of row indices.")
    for row_index in rows:
        validate_row_index(data, row_index)
