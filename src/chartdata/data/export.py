"""Export tables and views to other formats.

Any table-like object can be turned into CSV text,
where each field is the formatted value of a cell::

    >>> from chartdata.data import DataTable
    >>> table = DataTable()
    >>> table.add_column("string", "Name")
    0
    >>> table.add_column("number", "Amount")
    1
    >>> table.add_rows([['The "Rock", Bob', 1500], ["Alice", None]])
    1
    >>> print(data_table_to_csv(table), end="")
    "The ""Rock"", Bob","1,500"
    Alice,

or into a :class:`pyarrow.Table` where each column
becomes a typed Arrow column::

    >>> arrow_table = data_table_to_arrow(table)
    >>> arrow_table.column_names
    ['Name', 'Amount']
    >>> arrow_table.column("Amount").to_pylist()
    [1500, None]
"""

import datetime
from typing import TYPE_CHECKING, Any

import pyarrow as pa

from ..errors import TypeMismatchError
from .types import ColumnType, is_number

if TYPE_CHECKING:
    from .base import AbstractDataTable

__all__ = ("data_table_to_csv", "data_table_to_arrow", "arrow_type_for_column")


def escape_csv_field(value: str) -> str:
    """Quote a CSV field when it contains a comma, a quote or a line break."""
    value = value.replace('"', '""')
    if "," in value or '"' in value or "\n" in value or "\r" in value:
        value = f'"{value}"'
    return value


def data_table_to_csv(data: "AbstractDataTable") -> str:
    """Convert the formatted values of ``data`` to CSV, one line per row."""
    lines = []
    for row in range(data.get_number_of_rows()):
        fields = [
            escape_csv_field(data.get_formatted_value(row, column))
            for column in range(data.get_number_of_columns())
        ]
        lines.append(",".join(fields) + "\n")
    return "".join(lines)


def arrow_type_for_column(column_type: str, values: list[Any]) -> pa.DataType:
    """The Arrow type that can store the values of a column.

    Number columns are stored as integers when
    all their values are integers, as doubles otherwise.
    """
    if column_type == ColumnType.STRING:
        return pa.string()
    elif column_type == ColumnType.NUMBER:
        if all(v is None or (is_number(v) and isinstance(v, int)) for v in values):
            return pa.int64()
        return pa.float64()
    elif column_type == ColumnType.BOOLEAN:
        return pa.bool_()
    elif column_type == ColumnType.DATE:
        return pa.date32()
    elif column_type == ColumnType.DATETIME:
        return pa.timestamp("ms")
    elif column_type == ColumnType.TIMEOFDAY:
        return pa.list_(pa.int64())
    raise TypeMismatchError(f"Columns of type {column_type} can't be exported.")


def data_table_to_arrow(data: "AbstractDataTable") -> pa.Table:
    """Convert the values of ``data`` to a :class:`pyarrow.Table`.

    Column names are the column ids, falling back to labels and
    then to the position of the column. Id, label and type are
    preserved in the field metadata.
    """
    arrays = []
    fields = []
    number_of_rows = data.get_number_of_rows()
    for column in range(data.get_number_of_columns()):
        column_type = data.get_column_type(column)
        values = [data.get_value(row, column) for row in range(number_of_rows)]
        arrow_type = arrow_type_for_column(column_type, values)
        if column_type == ColumnType.DATE:
            values = [v.date() if isinstance(v, datetime.datetime) else v for v in values]
        column_id = data.get_column_id(column)
        label = data.get_column_label(column)
        fields.append(
            pa.field(
                column_id or label or f"Column {column}",
                arrow_type,
                metadata={"id": column_id, "label": label, "type": column_type},
            )
        )
        arrays.append(pa.array(values, type=arrow_type))
    return pa.Table.from_arrays(arrays, schema=pa.schema(fields))
