"""The ChartData tables

The data package defines the in-memory tables
that charts consume and the operations available on them.

A :class:`DataTable` stores typed columns and rows of cells,
each cell holding a value, an optional formatted text and
optional properties. A :class:`DataView` wraps a table, or
another view, selecting and reordering its rows and columns
and adding columns computed out of the wrapped data.

Both implement :class:`~chartdata.data.base.AbstractDataTable`
thus the algorithms (sorting, filtering, ranges, grouping
and joins) work the same way on tables and views:

>>> from chartdata.data import DataTable, DataView
>>> table = DataTable({
...     "cols": [{"id": "name", "type": "string"}, {"id": "age", "type": "number"}],
...     "rows": [{"c": [{"v": "Alice"}, {"v": 30}]},
...              {"c": [{"v": "Bob"}, {"v": 25}]},
...              {"c": [{"v": "Carol"}, {"v": 35}]}],
... })
>>> view = DataView(table)
>>> view.set_rows(table.get_filtered_rows([{"column": "age", "minValue": 30}]))
>>> print(view)
name  | age
----- | ---
Alice | 30
Carol | 35

Tables travel as JSON in the wire format, where dates
are encoded as ``Date(...)`` literals:

>>> table.add_column("date", "Birthday", "birthday")
2
>>> import datetime
>>> table.set_value(0, 2, datetime.date(1994, 3, 1))
>>> table.to_json()
'{"cols": [..., {"id": "birthday", "label": "Birthday", "type": "date"}], "rows": [{"c": [{"v": "Alice"}, {"v": 30}, {"v": "Date(1994, 2, 1)"}]}, ...]}'
"""

from .aggregate import (
    Aggregation,
    AvgAggregation,
    CountAggregation,
    FunctionAggregation,
    GroupKey,
    MaxAggregation,
    MinAggregation,
    SumAggregation,
    group,
    month,
)
from .base import AbstractDataTable, ColumnRef
from .datasources import (
    array_to_data_table,
    arrow_to_data_table,
    csv_to_data_table,
    records_to_data_table,
    values_to_data_table,
)
from .datatable import DataTable
from .dataview import ComputedColumn, DataView
from .join import join
from .serialization import deserialize, serialize
from .sorting import compare_values
from .types import Cell, ColumnSpec, ColumnType, ResponseVersion, Row

__all__ = (
    "AbstractDataTable",
    "ColumnRef",
    "DataTable",
    "DataView",
    "ComputedColumn",
    "Cell",
    "Row",
    "ColumnSpec",
    "ColumnType",
    "ResponseVersion",
    "group",
    "GroupKey",
    "Aggregation",
    "FunctionAggregation",
    "SumAggregation",
    "CountAggregation",
    "AvgAggregation",
    "MinAggregation",
    "MaxAggregation",
    "month",
    "join",
    "compare_values",
    "serialize",
    "deserialize",
    "array_to_data_table",
    "records_to_data_table",
    "values_to_data_table",
    "csv_to_data_table",
    "arrow_to_data_table",
)
