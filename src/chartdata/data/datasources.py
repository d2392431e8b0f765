"""Build tables out of other representations of the data.

Tables don't have to be built column by column,
the functions of this module create them out of
the most common shapes the data comes in:

* lists of rows, where the first row holds the headers,
  :func:`array_to_data_table`
* lists of dictionaries, :func:`records_to_data_table`
* lists of values, :func:`values_to_data_table`
* CSV files, :func:`csv_to_data_table`
* Arrow tables, :func:`arrow_to_data_table`

When the column types are not provided they are
inferred from the values:

>>> table = array_to_data_table([["Name", "Age"], ["Alice", 30], ["Bob", None]])
>>> [table.get_column_type(idx) for idx in range(table.get_number_of_columns())]
['string', 'number']
>>> records_to_data_table([{"a": 1}, {"a": 2, "b": True}]).to_pojo()["cols"]
[{'id': 'a', 'label': '', 'type': 'number'}, {'id': 'b', 'label': '', 'type': 'boolean'}]
"""

import datetime
import decimal
import logging
import os
import re
from typing import Any

import pyarrow as pa
import pyarrow.csv

from ..errors import InvalidSpecificationError, TypeMismatchError
from .datatable import DataTable
from .types import COLUMN_TYPES, ColumnType, infer_type_of_value

__all__ = (
    "array_to_data_table",
    "records_to_data_table",
    "values_to_data_table",
    "csv_to_data_table",
    "arrow_to_data_table",
)

logger = logging.getLogger(__name__)

TIMEOFDAY_RE = re.compile(r"^\s*(\d+)(?::(\d+))?(?::(\d+))?(?:\.(\d+))?\s*$")


def _first_row_to_columns(first_row: Any, has_header: bool) -> list[dict[str, Any]]:
    if has_header:
        if not isinstance(first_row, (list, tuple)):
            raise InvalidSpecificationError("Column header row must be a list.")
        columns = []
        for header in first_row:
            if isinstance(header, str):
                columns.append({"label": header})
            elif isinstance(header, dict):
                columns.append(dict(header))
            else:
                raise InvalidSpecificationError(f"Unknown type of column header: {header!r}")
        return columns
    if isinstance(first_row, dict):
        first_row = first_row.get("c") or []
    return [{} for _ in first_row]


def _cell_value(cell: Any) -> Any:
    if isinstance(cell, dict):
        return cell.get("v")
    return cell


def _infer_column_type(values: list[Any]) -> str:
    inferred = None
    for value in values:
        if value is None:
            continue
        value_type = infer_type_of_value(value)
        if inferred is None:
            inferred = value_type
        elif inferred == ColumnType.DATE and value_type == ColumnType.DATETIME:
            # Dates at midnight are promoted once a real datetime shows up.
            inferred = value_type
    return inferred or ColumnType.STRING.value


def array_to_data_table(rows: list[Any], no_headers: bool = False) -> DataTable:
    """Build a table out of a list of rows.

    :param rows: The rows, each one a list of values or cells,
                 or a dictionary with ``c`` (the cells) and ``p`` keys.
    :param no_headers: When ``False`` the first row holds the column
                       labels, or column specification dictionaries.
    """
    if not isinstance(rows, (list, tuple)):
        raise InvalidSpecificationError("Data for array_to_data_table is not a list.")
    if not rows:
        return DataTable()

    columns = _first_row_to_columns(rows[0], not no_headers)
    table_rows = []
    for row in rows[0 if no_headers else 1 :]:
        if isinstance(row, dict):
            table_rows.append({"c": list(row.get("c") or []), "p": row.get("p")})
        elif isinstance(row, (list, tuple)):
            table_rows.append({"c": list(row)})
        else:
            raise InvalidSpecificationError(f"Invalid row {row!r}.")

    for column_index, column in enumerate(columns):
        if not column.get("type"):
            column["type"] = _infer_column_type(
                [
                    _cell_value(row["c"][column_index])
                    for row in table_rows
                    if column_index < len(row["c"])
                ]
            )
    return DataTable({"cols": columns, "rows": table_rows})


def records_to_data_table(records: list[dict[str, Any]]) -> DataTable:
    """Build a table out of dictionaries, one per row.

    Each distinct key becomes a column, in order of appearance.
    Rows missing a key get an empty cell.
    """
    column_ids: dict[str, None] = {}
    for record in records:
        for key in record:
            column_ids.setdefault(key, None)
    header = [{"id": column_id} for column_id in column_ids]
    rows = [[record.get(column_id) for column_id in column_ids] for record in records]
    return array_to_data_table([header] + rows)


def values_to_data_table(values: list[Any]) -> DataTable:
    """Build a single column table, with ``data`` id, out of a list of values."""
    return records_to_data_table([{"data": value} for value in values])


def parse_timeofday(text: str | None) -> list[int] | None:
    """Parse ``HH:MM[:SS[.mmm]]`` into a timeofday value.

    >>> parse_timeofday("13:05:02.250")
    [13, 5, 2, 250]
    """
    if text is None:
        return None
    match = TIMEOFDAY_RE.match(text)
    if match is None:
        raise TypeMismatchError(f"Invalid time of day {text!r}.")
    hours, minutes, seconds, fraction = match.groups()
    result = [int(hours), int(minutes or 0), int(seconds or 0)]
    if fraction:
        result.append(int(fraction.ljust(3, "0")[:3]))
    return result


def _column_type_of_arrow(arrow_type: pa.DataType) -> str:
    column_type = _arrow_column_type(arrow_type)
    if column_type is None:
        raise TypeMismatchError(f"Arrow type {arrow_type} is not supported.")
    return column_type


def _arrow_column_type(arrow_type: pa.DataType) -> str | None:
    if pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
        return ColumnType.STRING.value
    elif pa.types.is_null(arrow_type):
        return ColumnType.STRING.value
    elif pa.types.is_boolean(arrow_type):
        return ColumnType.BOOLEAN.value
    elif (
        pa.types.is_integer(arrow_type)
        or pa.types.is_floating(arrow_type)
        or pa.types.is_decimal(arrow_type)
    ):
        return ColumnType.NUMBER.value
    elif pa.types.is_date(arrow_type):
        return ColumnType.DATE.value
    elif pa.types.is_timestamp(arrow_type):
        return ColumnType.DATETIME.value
    elif pa.types.is_time(arrow_type):
        return ColumnType.TIMEOFDAY.value
    elif pa.types.is_list(arrow_type) and pa.types.is_integer(arrow_type.value_type):
        return ColumnType.TIMEOFDAY.value
    return None


ARROW_TYPES = {
    ColumnType.STRING: pa.string(),
    ColumnType.NUMBER: pa.float64(),
    ColumnType.BOOLEAN: pa.bool_(),
    ColumnType.DATE: pa.date32(),
    ColumnType.DATETIME: pa.timestamp("ms"),
}


def _cast_column(column: pa.ChunkedArray, column_type: str) -> pa.ChunkedArray:
    """Cast an Arrow column so that it holds values of ``column_type``."""
    target = ARROW_TYPES.get(column_type)
    if target is None or _arrow_column_type(column.type) == column_type:
        return column
    try:
        return column.cast(target)
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError) as err:
        raise TypeMismatchError(
            f"Can't convert values of type {column.type} to {column_type}: {err}"
        ) from err


def _python_value(value: Any, column_type: str) -> Any:
    if value is None:
        return None
    if isinstance(value, decimal.Decimal):
        return float(value)
    if column_type == ColumnType.DATETIME and isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
        return value
    if column_type == ColumnType.TIMEOFDAY:
        if isinstance(value, str):
            return parse_timeofday(value)
        if isinstance(value, datetime.time):
            return [value.hour, value.minute, value.second, value.microsecond // 1000]
    return value


def arrow_to_data_table(
    table: pa.Table, column_types: list[str] | None = None, labels: bool = True
) -> DataTable:
    """Build a table out of a :class:`pyarrow.Table`.

    The column types are derived from the Arrow types, unless
    ``column_types`` are provided, in which case the Arrow columns
    are converted to them. Ids, labels and types stored in the field
    metadata by :meth:`~chartdata.data.base.AbstractDataTable.to_arrow`
    are restored.

    :param table: The Arrow table to convert.
    :param column_types: The type of each column.
    :param labels: Use field names as labels and ids of the columns.
    """
    if column_types is not None:
        if len(column_types) != table.num_columns:
            raise InvalidSpecificationError(
                f"Got {len(column_types)} column types for {table.num_columns} columns."
            )
        for column_type in column_types:
            if column_type not in COLUMN_TYPES:
                raise TypeMismatchError(f"Unsupported type: {column_type}")

    columns = []
    values = []
    for index, field in enumerate(table.schema):
        metadata = {
            key.decode(): value.decode() for key, value in (field.metadata or {}).items()
        }
        if column_types is not None:
            column_type = column_types[index]
        else:
            column_type = metadata.get("type") or _column_type_of_arrow(field.type)
        name = field.name if labels else ""
        columns.append(
            {
                "id": metadata.get("id", name),
                "label": metadata.get("label", name),
                "type": column_type,
            }
        )
        column = _cast_column(table.column(index), column_type)
        values.append([_python_value(value, column_type) for value in column.to_pylist()])

    rows = [{"c": [{"v": value} for value in row]} for row in zip(*values)]
    return DataTable({"cols": columns, "rows": rows})


def csv_to_data_table(
    source: str | os.PathLike | bytes,
    column_types: list[str] | None = None,
    header: bool = True,
) -> DataTable:
    """Load a CSV file into a table.

    The CSV is parsed by :mod:`pyarrow.csv`, so types are inferred
    by Arrow unless ``column_types`` are provided.
    Timeofday columns are read as ``HH:MM[:SS[.mmm]]`` text.

    :param source: The path of a local CSV file or its content as bytes.
    :param column_types: The type of each column.
    :param header: If the first line of the file holds the column labels.
    """

    def open_source() -> Any:
        if isinstance(source, bytes):
            return pa.BufferReader(source)
        return source

    read_options = pa.csv.ReadOptions(autogenerate_column_names=not header)
    convert_options = pa.csv.ConvertOptions()
    if column_types is not None:
        # Poll the column names, so that the reader can be told their types.
        with pa.csv.open_csv(open_source(), read_options=read_options) as reader:
            names = reader.schema.names
        # Numbers are left to inference, so that integers stay integers.
        arrow_types = dict(ARROW_TYPES, timeofday=pa.string())
        del arrow_types[ColumnType.NUMBER]
        convert_options = pa.csv.ConvertOptions(
            column_types={
                name: arrow_types[column_type]
                for name, column_type in zip(names, column_types)
                if column_type in arrow_types
            }
        )

    try:
        table = pa.csv.read_csv(
            open_source(), read_options=read_options, convert_options=convert_options
        )
    except pa.ArrowInvalid as err:
        raise TypeMismatchError(f"Can't load CSV with the given column types: {err}") from err
    logger.debug("Loaded %d rows from CSV", table.num_rows)
    return arrow_to_data_table(table, column_types, labels=header)
