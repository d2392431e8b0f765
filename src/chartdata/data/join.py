"""Join two tables on their key columns.

The join is performed by sorting both sides by their keys
and then scanning them in parallel, aligning the rows where
the keys are equal (a *sort-merge* join).

An alternative implementation would be to use a hash join algorithm
that builds a hash table from one of the tables and then probes the
other table to find matching rows, but that would require keys to be
hashable while the merge only requires them to be comparable, which
is what :func:`~chartdata.data.sorting.compare_values` provides for
every column type.

Supposing we have two tables::

    left:
    +----+-------+
    | id | value |
    +----+-------+
    | a  | 1     |
    | a  | 2     |
    | b  | 3     |
    +----+-------+

    right:
    +----+-------+
    | id | other |
    +----+-------+
    | a  | 10    |
    | c  | 20    |
    +----+-------+

An inner join on ``id`` pairs both the ``a`` rows of the left
side with the only ``a`` row of the right side:

>>> from chartdata.data import DataTable
>>> left = DataTable({
...     "cols": [{"id": "id", "type": "string"}, {"id": "value", "type": "number"}],
...     "rows": [{"c": [{"v": "a"}, {"v": 1}]}, {"c": [{"v": "a"}, {"v": 2}]},
...              {"c": [{"v": "b"}, {"v": 3}]}],
... })
>>> right = DataTable({
...     "cols": [{"id": "id", "type": "string"}, {"id": "other", "type": "number"}],
...     "rows": [{"c": [{"v": "a"}, {"v": 10}]}, {"c": [{"v": "c"}, {"v": 20}]}],
... })
>>> print(join(left, right, "inner", [("id", "id")], ["value"], ["other"]))
id | value | other
-- | ----- | -----
a  | 1     | 10
a  | 2     | 10

The ``left``, ``right`` and ``full`` joins also emit the rows
that have no match on the other side, with empty cells
in place of the missing side.
"""

import copy
import logging
from typing import Any

from ..errors import InvalidSpecificationError, ShapeError
from .base import AbstractDataTable, ColumnRef
from .datatable import DataTable
from .sorting import compare_values
from .validation import validate_column_reference

__all__ = ("join", "JOIN_METHODS")

logger = logging.getLogger(__name__)

JOIN_METHODS = ("inner", "left", "right", "full")


def _copy_column(target: DataTable, source: AbstractDataTable, column_index: int) -> None:
    index = target.add_column(
        source.get_column_type(column_index),
        source.get_column_label(column_index),
        source.get_column_id(column_index),
    )
    target.set_column_properties(
        index, copy.deepcopy(source.get_column_properties(column_index))
    )


def _copy_cell(source: AbstractDataTable, row_index: int, column_index: int) -> dict[str, Any]:
    return {
        "v": source.get_value(row_index, column_index),
        "f": source.get_formatted_value(row_index, column_index),
        "p": copy.deepcopy(source.get_properties(row_index, column_index)),
    }


def join(
    left: AbstractDataTable,
    right: AbstractDataTable,
    how: str,
    keys: list[tuple[ColumnRef, ColumnRef]],
    left_columns: list[ColumnRef] = (),
    right_columns: list[ColumnRef] = (),
) -> DataTable:
    """Join ``left`` and ``right`` on the given keys.

    The result has the key columns first, as described by
    the left side, then ``left_columns`` and then ``right_columns``.

    :param left: The left side of the join.
    :param right: The right side of the join.
    :param how: One of ``inner``, ``left``, ``right`` or ``full``.
    :param keys: Pairs of columns, the first in ``left`` and the
                 second in ``right``, that have to be equal for
                 rows to match. Both columns must have the same type.
    :param left_columns: The columns of ``left`` to include in the result.
    :param right_columns: The columns of ``right`` to include in the result.
    """
    if how not in JOIN_METHODS:
        raise InvalidSpecificationError(
            f"Invalid join method {how!r}, must be one of {', '.join(JOIN_METHODS)}."
        )
    key_pairs = [
        (validate_column_reference(left, left_key), validate_column_reference(right, right_key))
        for left_key, right_key in keys
    ]
    left_indices = [validate_column_reference(left, column) for column in left_columns]
    right_indices = [validate_column_reference(right, column) for column in right_columns]
    include_left = how in ("left", "full")
    include_right = how in ("right", "full")

    result = DataTable()
    key_types = []
    for left_key, right_key in key_pairs:
        left_type = left.get_column_type(left_key)
        right_type = right.get_column_type(right_key)
        if left_type != right_type:
            raise ShapeError(f"Key types do not match: {left_type}, {right_type}")
        _copy_column(result, left, left_key)
        key_types.append(left_type)
    for column_index in left_indices:
        _copy_column(result, left, column_index)
    for column_index in right_indices:
        _copy_column(result, right, column_index)

    if not key_pairs:
        raise InvalidSpecificationError("At least one pair of key columns is required.")
    left_rows = left.get_sorted_rows([{"column": key[0]} for key in key_pairs])
    right_rows = right.get_sorted_rows([{"column": key[1]} for key in key_pairs])

    def compare_keys(left_row: int, right_row: int) -> int:
        for key_type, (left_key, right_key) in zip(key_types, key_pairs):
            comparison = compare_values(
                key_type,
                left.get_value(left_row, left_key),
                right.get_value(right_row, right_key),
            )
            if comparison:
                return comparison
        return 0

    rows = []
    is_right_row_emitted = False
    i = j = 0
    while i < len(left_rows) or j < len(right_rows):
        left_row = left_rows[i] if i < len(left_rows) else None
        right_row = right_rows[j] if j < len(right_rows) else None
        if right_row is None:
            if not include_left:
                break
            comparison = -1
        elif left_row is None:
            if not include_right:
                break
            comparison = 1
        else:
            comparison = compare_keys(left_row, right_row)

        # The right row was already paired with the previous left rows,
        # once the keys stop matching it's time to move past it.
        if is_right_row_emitted and comparison != 0:
            is_right_row_emitted = False
            j += 1
            continue

        if (
            comparison == 0
            or (comparison < 0 and include_left)
            or (comparison > 0 and include_right)
        ):
            if comparison < 0 or (comparison == 0 and how != "right"):
                source, source_row, source_keys = left, left_row, [key[0] for key in key_pairs]
            else:
                source, source_row, source_keys = right, right_row, [key[1] for key in key_pairs]

            if how == "full":
                cells = [{"v": source.get_value(source_row, key)} for key in source_keys]
            else:
                cells = [_copy_cell(source, source_row, key) for key in source_keys]

            if comparison <= 0:
                cells += [_copy_cell(left, left_row, column) for column in left_indices]
            else:
                cells += [None] * len(left_indices)
            if comparison >= 0:
                cells += [_copy_cell(right, right_row, column) for column in right_indices]
            else:
                cells += [None] * len(right_indices)
            rows.append(cells)

        if comparison > 0:
            j += 1
        else:
            i += 1
        if comparison == 0:
            is_right_row_emitted = True

    result.add_rows(rows)
    logger.debug(
        "Joined %d left rows and %d right rows into %d rows (%s)",
        len(left_rows),
        len(right_rows),
        len(rows),
        how,
    )
    return result
