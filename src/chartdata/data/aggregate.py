"""Group rows and compute aggregations.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the rows sharing the same values in some columns.

The :func:`group` function groups the rows of a table
or view by a set of key columns and computes the
aggregations of other columns for each group.

For example, given the following data::

    city, shop, n_employees
    New York, Shop A, 10
    New York, Shop B, 15
    Los Angeles, Shop C, 8
    Los Angeles, Shop D, 12
    New York, Shop E, 20

We could group by city and compute the sum of the employees
to get::

    city, total_employees
    Los Angeles, 20
    New York, 45

>>> from chartdata.data import DataTable
>>> table = DataTable({
...     "cols": [{"id": "city", "type": "string"}, {"id": "shop", "type": "string"},
...              {"id": "n_employees", "type": "number"}],
...     "rows": [{"c": [{"v": "New York"}, {"v": "Shop A"}, {"v": 10}]},
...              {"c": [{"v": "New York"}, {"v": "Shop B"}, {"v": 15}]},
...              {"c": [{"v": "Los Angeles"}, {"v": "Shop C"}, {"v": 8}]},
...              {"c": [{"v": "Los Angeles"}, {"v": "Shop D"}, {"v": 12}]},
...              {"c": [{"v": "New York"}, {"v": "Shop E"}, {"v": 20}]}],
... })
>>> result = group(table, ["city"], [SumAggregation("n_employees", id="total_employees")])
>>> print(result)
city        | total_employees
----------- | ---------------
Los Angeles | 20
New York    | 45

Groups are found by sorting the rows by their keys,
so the result is sorted by the keys too, and then
scanning the rows until the keys change.

Keys can be transformed before grouping by providing
a *modifier*, for example to group dates by month::

    group(table, [GroupKey("when", modifier=month, type="number")], [...])
"""

import abc
import datetime
import logging
from typing import Any, Callable

from ..errors import InvalidSpecificationError
from .base import AbstractDataTable, ColumnRef
from .datatable import DataTable
from .dataview import DataView
from .sorting import compare_values
from .validation import validate_column_reference

__all__ = (
    "group",
    "GroupKey",
    "Aggregation",
    "FunctionAggregation",
    "SumAggregation",
    "CountAggregation",
    "AvgAggregation",
    "MinAggregation",
    "MaxAggregation",
    "sum_values",
    "count_values",
    "avg_values",
    "min_values",
    "max_values",
    "month",
)

logger = logging.getLogger(__name__)


def sum_values(values: list[Any]) -> int | float:
    """Sum of the values, ignoring missing ones."""
    return sum(v for v in values if v is not None)


def count_values(values: list[Any]) -> int:
    """Number of values, including missing ones."""
    return len(values)


def avg_values(values: list[Any]) -> float | None:
    """Average of the values, ignoring missing ones."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def min_values(values: list[Any]) -> Any:
    """Smallest value, ignoring missing ones. ``None`` when there are no values."""
    return min((v for v in values if v is not None), default=None)


def max_values(values: list[Any]) -> Any:
    """Largest value, ignoring missing ones. ``None`` when there are no values."""
    return max((v for v in values if v is not None), default=None)


def month(value: Any) -> int | None:
    """Key modifier grouping dates and datetimes by their month, ``1`` to ``12``."""
    if isinstance(value, datetime.date):
        return value.month
    return None


class GroupKey:
    """A key column of a grouping.

    :param column: The column to group by.
    :param modifier: A function transforming the values of the column
                     before grouping them.
    :param type: The type of the values returned by the modifier.
    :param label: The label of the key column in the result.
    :param id: The id of the key column in the result.
    """

    def __init__(
        self,
        column: ColumnRef,
        modifier: Callable[[Any], Any] | None = None,
        type: str | None = None,
        label: str | None = None,
        id: str | None = None,
    ) -> None:
        self.column = column
        self.modifier = modifier
        self.type = type
        self.label = label
        self.id = id

    def __str__(self) -> str:
        return f"GroupKey({self.column})"

    __repr__ = __str__

    @classmethod
    def from_spec(cls, spec: "ColumnRef | dict[str, Any] | GroupKey") -> "GroupKey":
        if isinstance(spec, GroupKey):
            return spec
        if isinstance(spec, dict):
            if "column" not in spec:
                raise InvalidSpecificationError(f'Group key {spec!r} needs a "column".')
            return cls(
                spec["column"],
                modifier=spec.get("modifier"),
                type=spec.get("type"),
                label=spec.get("label"),
                id=spec.get("id"),
            )
        return cls(spec)


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation receives the values that a column
    has in the rows of a group and reduces them to a single value.

    :param column: The column to aggregate.
    :param type: The type of the aggregated value,
                 when ``None`` the type of the aggregated column is used.
    :param label: The label of the result column, defaults to the aggregated column one.
    :param id: The id of the result column, defaults to the aggregated column one.
    """

    result_type: str | None = None

    def __init__(
        self,
        column: ColumnRef,
        type: str | None = None,
        label: str | None = None,
        id: str | None = None,
    ) -> None:
        self.column = column
        self.type = type or self.result_type
        self.label = label
        self.id = id

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def aggregate(self, values: list[Any]) -> Any: ...

    @classmethod
    def from_spec(cls, spec: "dict[str, Any] | Aggregation") -> "Aggregation":
        """Build an aggregation out of its dictionary description.

        The ``aggregation`` key is either one of the names
        ``sum``, ``count``, ``avg``, ``min`` and ``max``
        or a function reducing a list of values.
        """
        if isinstance(spec, Aggregation):
            return spec
        if not isinstance(spec, dict) or "column" not in spec:
            raise InvalidSpecificationError(
                f'Aggregation {spec!r} must be a dictionary with a "column".'
            )
        aggregation = spec.get("aggregation")
        options = {"type": spec.get("type"), "label": spec.get("label"), "id": spec.get("id")}
        if isinstance(aggregation, str):
            if aggregation not in NAMED_AGGREGATIONS:
                raise InvalidSpecificationError(f'Unknown aggregation "{aggregation}".')
            return NAMED_AGGREGATIONS[aggregation](spec["column"], **options)
        if not callable(aggregation):
            raise InvalidSpecificationError(
                f'Property "aggregation" of {spec!r} must be a function.'
            )
        return FunctionAggregation(spec["column"], aggregation, **options)


class FunctionAggregation(Aggregation):
    """Aggregate through any function reducing a list of values."""

    def __init__(
        self,
        column: ColumnRef,
        function: Callable[[list[Any]], Any],
        type: str | None = None,
        label: str | None = None,
        id: str | None = None,
    ) -> None:
        super().__init__(column, type=type, label=label, id=id)
        self.function = function

    def aggregate(self, values: list[Any]) -> Any:
        return self.function(values)


class SumAggregation(Aggregation):
    """Compute the sum of an aggregated column."""

    result_type = "number"

    def aggregate(self, values: list[Any]) -> Any:
        return sum_values(values)


class CountAggregation(Aggregation):
    """Count the rows of each group."""

    result_type = "number"

    def aggregate(self, values: list[Any]) -> Any:
        return count_values(values)


class AvgAggregation(Aggregation):
    """Compute the average of an aggregated column."""

    result_type = "number"

    def aggregate(self, values: list[Any]) -> Any:
        return avg_values(values)


class MinAggregation(Aggregation):
    """Compute the min of an aggregated column."""

    def aggregate(self, values: list[Any]) -> Any:
        return min_values(values)


class MaxAggregation(Aggregation):
    """Compute the max of an aggregated column."""

    def aggregate(self, values: list[Any]) -> Any:
        return max_values(values)


NAMED_AGGREGATIONS: dict[str, type[Aggregation]] = {
    "sum": SumAggregation,
    "count": CountAggregation,
    "avg": AvgAggregation,
    "min": MinAggregation,
    "max": MaxAggregation,
}


def _modifier_calc(column_index: int, modifier: Callable[[Any], Any]) -> Callable[[AbstractDataTable, int], Any]:
    def calc(data: AbstractDataTable, row_index: int) -> Any:
        return modifier(data.get_value(row_index, column_index))

    return calc


def group(
    data: AbstractDataTable,
    keys: list["ColumnRef | dict[str, Any] | GroupKey"],
    columns: list["dict[str, Any] | Aggregation"] = (),
) -> DataTable:
    """Group the rows of ``data`` by ``keys`` and aggregate ``columns``.

    The result has one column for each key followed by one
    column for each aggregation, and one row for each distinct
    combination of keys, sorted by the keys.
    When no keys are provided all rows form a single group.

    :param data: The table or view to group.
    :param keys: The key columns, as column references, :class:`GroupKey`
                 or dictionaries with the same arguments.
    :param columns: The aggregations, as :class:`Aggregation`
                    or dictionaries accepted by :meth:`Aggregation.from_spec`.
    """
    group_keys = [GroupKey.from_spec(key) for key in keys]
    aggregations = [Aggregation.from_spec(column) for column in columns]

    key_indices = [validate_column_reference(data, key.column) for key in group_keys]
    modified_keys = [
        (position, key) for position, key in enumerate(group_keys) if key.modifier is not None
    ]
    if modified_keys:
        # Modified keys become computed columns of a view over the data.
        view = DataView(data)
        view_columns = view.get_view_columns()
        for position, key in modified_keys:
            view_columns.append(
                {
                    "calc": _modifier_calc(key_indices[position], key.modifier),
                    "type": key.type,
                    "label": key.label,
                    "id": key.id,
                }
            )
            key_indices[position] = len(view_columns) - 1
        view.set_columns(view_columns)
        data = view

    result = DataTable()
    key_types = []
    for key, key_index in zip(group_keys, key_indices):
        key_type = data.get_column_type(key_index)
        result.add_column(
            key_type,
            key.label if key.label is not None else data.get_column_label(key_index),
            key.id if key.id is not None else data.get_column_id(key_index),
        )
        key_types.append(key_type)

    aggregation_indices = []
    for aggregation in aggregations:
        column_index = validate_column_reference(data, aggregation.column)
        result.add_column(
            aggregation.type or data.get_column_type(column_index),
            aggregation.label or data.get_column_label(column_index),
            aggregation.id if aggregation.id is not None else data.get_column_id(column_index),
        )
        aggregation_indices.append(column_index)

    if key_indices:
        sorted_rows = data.get_sorted_rows([{"column": idx} for idx in key_indices])
    else:
        sorted_rows = list(range(data.get_number_of_rows()))

    def same_keys(row1: int, row2: int) -> bool:
        return all(
            compare_values(key_type, data.get_value(row1, idx), data.get_value(row2, idx)) == 0
            for key_type, idx in zip(key_types, key_indices)
        )

    rows = []
    group_values: list[list[Any]] = [[] for _ in aggregations]
    for position, row_index in enumerate(sorted_rows):
        for values, column_index in zip(group_values, aggregation_indices):
            values.append(data.get_value(row_index, column_index))

        is_last = position == len(sorted_rows) - 1
        if is_last or not same_keys(row_index, sorted_rows[position + 1]):
            rows.append(
                [data.get_value(row_index, idx) for idx in key_indices]
                + [
                    aggregation.aggregate(values)
                    for aggregation, values in zip(aggregations, group_values)
                ]
            )
            group_values = [[] for _ in aggregations]

    result.add_rows(rows)
    logger.debug("Grouped %d rows into %d groups", len(sorted_rows), len(rows))
    return result
