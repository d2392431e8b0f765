"""In memory storage of typed tabular data.

A :class:`DataTable` holds a list of typed columns
and a list of rows, each row having exactly one
cell per column. Each cell holds a value, an optional
formatted value and optional properties::

    >>> table = DataTable()
    >>> table.add_column("string", "City", "city")
    0
    >>> table.add_column("number", "Population")
    1
    >>> table.add_rows([["Rome", 2873000], ["Milan", {"v": 1352000, "f": "1.3M"}]])
    1
    >>> table.get_formatted_value(0, 1)
    '2,873,000'
    >>> table.get_formatted_value(1, 1)
    '1.3M'

Tables can also be built out of their wire format,
the same returned by :meth:`DataTable.to_pojo` and
:meth:`DataTable.to_json`::

    >>> table = DataTable({
    ...     "cols": [{"id": "when", "type": "date"}],
    ...     "rows": [{"c": [{"v": "Date(2009, 7, 1)"}]}],
    ... })
    >>> table.get_value(0, table.get_column_index("when"))
    datetime.date(2009, 8, 1)

Every value is checked against the type of its column
and rejected when it does not match. Default formatted
values are computed on demand and cached until the
cell changes.
"""

import copy
import json
import logging
from typing import Any

from ..errors import InvalidSpecificationError, ShapeError, TypeMismatchError
from .base import AbstractDataTable, Formatter
from .formatting import format_value
from .serialization import deserialize_date
from .sorting import get_sorted_rows
from .types import (
    COLUMN_TYPES,
    Cell,
    ColumnSpec,
    ColumnType,
    Properties,
    ResponseVersion,
    Row,
    normalize_value,
    parse_cell,
    parse_number,
)
from .validation import (
    validate_column_index,
    validate_row_index,
    validate_type_match,
)

__all__ = ("DataTable",)

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class DataTable(AbstractDataTable):
    """Storage of typed columns and rows of cells.

    :param data: The initial content, in wire format,
                 either as a dictionary or as JSON text.
    :param version: The wire format version, ``"0.5"`` or ``"0.6"``.
    """

    MAX_ROWS_PER_INSERT = 10000

    def __init__(self, data: dict[str, Any] | str | None = None, version: str | None = None) -> None:
        super().__init__()
        if version == ResponseVersion.VERSION_0_5:
            self.version = ResponseVersion.VERSION_0_5.value
        else:
            self.version = ResponseVersion.VERSION_0_6.value

        self._columns: list[ColumnSpec] = []
        self._rows: list[Row] = []
        self._properties: Properties | None = None
        self._formatted_cache: dict[tuple[int, int], str] = {}

        if data is None:
            return
        if isinstance(data, str):
            data = json.loads(data)
        if not isinstance(data, dict):
            raise InvalidSpecificationError(f"Invalid table data {data!r}.")

        self._properties = copy.deepcopy(data.get("p"))
        for column in data.get("cols") or []:
            self.add_column(column)
        self._rows = [
            self._parse_row(row_index, row)
            for row_index, row in enumerate(data.get("rows") or [])
        ]

    def __repr__(self) -> str:
        return (
            f"DataTable(columns={[c.id or c.label for c in self._columns]}, "
            f"rows={len(self._rows)})"
        )

    def _parse_row(self, row_index: int, row: Any) -> Row:
        """Convert a row of the wire format into a :class:`Row`.

        Rows with less cells than columns are padded with empty cells.
        """
        if isinstance(row, Row):
            cells, properties = row.c, row.p
        elif isinstance(row, dict):
            cells, properties = row.get("c") or [], row.get("p")
        else:
            cells, properties = row, None
        if len(cells) > len(self._columns):
            raise ShapeError(
                f"Row {row_index} has {len(cells)} cells, but the table has "
                f"{len(self._columns)} columns."
            )
        parsed = []
        for column_index, cell in enumerate(cells):
            cell = parse_cell(cell)
            column_type = self._columns[column_index].type
            if column_type in (ColumnType.DATE, ColumnType.DATETIME) and isinstance(cell.v, str):
                cell.v = deserialize_date(cell.v)
            parsed.append(self._check_cell(column_index, cell))
        parsed += [Cell() for _ in range(len(self._columns) - len(parsed))]
        return Row(c=parsed, p=properties)

    def _check_cell(self, column_index: int, cell: Cell) -> Cell:
        validate_type_match(self, column_index, cell.v)
        cell.v = normalize_value(cell.v, self._columns[column_index].type)
        return cell

    def get_number_of_rows(self) -> int:
        return len(self._rows)

    def get_number_of_columns(self) -> int:
        return len(self._columns)

    def _get_column(self, column_index: int) -> ColumnSpec:
        validate_column_index(self, column_index)
        return self._columns[column_index]

    def get_column_id(self, column_index: int) -> str:
        return self._get_column(column_index).id

    def get_column_label(self, column_index: int) -> str:
        return self._get_column(column_index).label

    def get_column_pattern(self, column_index: int) -> str | None:
        return self._get_column(column_index).pattern

    def get_column_type(self, column_index: int) -> str:
        return self._get_column(column_index).type

    def get_column_properties(self, column_index: int) -> Properties:
        column = self._get_column(column_index)
        if column.p is None:
            column.p = {}
        return column.p

    def get_column_property(self, column_index: int, name: str) -> Any:
        properties = self._get_column(column_index).p
        if properties is None:
            return None
        return properties.get(name)

    def set_column_properties(self, column_index: int, properties: Properties | None) -> None:
        self._get_column(column_index).p = properties

    def set_column_property(self, column_index: int, name: str, value: Any) -> None:
        self.get_column_properties(column_index)[name] = value

    def set_column_label(self, column_index: int, label: str) -> None:
        self._get_column(column_index).label = label
        self.invalidate_column_ref_map()

    def get_cell(self, row_index: int, column_index: int) -> Cell:
        validate_row_index(self, row_index)
        validate_column_index(self, column_index)
        return self._rows[row_index].c[column_index]

    def get_formatted_value(
        self, row_index: int, column_index: int, formatter: Formatter | None = None
    ) -> str:
        cell = self.get_cell(row_index, column_index)
        if cell.f is not None:
            return cell.f
        if formatter is not None:
            return formatter(cell.v)
        key = (row_index, column_index)
        if key in self._formatted_cache:
            return self._formatted_cache[key]
        formatted = format_value(cell.v, self._columns[column_index].type)
        self._formatted_cache[key] = formatted
        return formatted

    def set_cell(
        self,
        row_index: int,
        column_index: int,
        value: Any = _UNSET,
        formatted_value: str | None = _UNSET,
        properties: Properties | None = _UNSET,
    ) -> None:
        """Change a cell, arguments that are not provided are left untouched.

        Numeric columns also accept strings holding
        a number, which are converted to the number.
        """
        cell = self.get_cell(row_index, column_index)
        self._formatted_cache.pop((row_index, column_index), None)
        if value is not _UNSET:
            column_type = self._columns[column_index].type
            if column_type == ColumnType.NUMBER and isinstance(value, str):
                number = parse_number(value)
                if number is not None:
                    value = number
            validate_type_match(self, column_index, value)
            cell.v = normalize_value(value, column_type)
        if formatted_value is not _UNSET:
            if formatted_value is not None and not isinstance(formatted_value, str):
                raise TypeMismatchError("Formatted value, if specified, must be a string.")
            cell.f = formatted_value
        if properties is not _UNSET:
            cell.p = properties if isinstance(properties, dict) else {}

    def set_value(self, row_index: int, column_index: int, value: Any) -> None:
        self.set_cell(row_index, column_index, value)

    def set_formatted_value(
        self, row_index: int, column_index: int, formatted_value: str | None
    ) -> None:
        self.set_cell(row_index, column_index, formatted_value=formatted_value)

    def set_properties(
        self, row_index: int, column_index: int, properties: Properties | None
    ) -> None:
        self.set_cell(row_index, column_index, properties=properties)

    def get_row_properties(self, row_index: int) -> Properties:
        validate_row_index(self, row_index)
        row = self._rows[row_index]
        if row.p is None:
            row.p = {}
        return row.p

    def get_row_property(self, row_index: int, name: str) -> Any:
        validate_row_index(self, row_index)
        properties = self._rows[row_index].p
        if properties is None:
            return None
        return properties.get(name)

    def set_row_properties(self, row_index: int, properties: Properties | None) -> None:
        validate_row_index(self, row_index)
        self._rows[row_index].p = properties

    def set_row_property(self, row_index: int, name: str, value: Any) -> None:
        self.get_row_properties(row_index)[name] = value

    def get_table_properties(self) -> Properties:
        if self._properties is None:
            self._properties = {}
        return self._properties

    def get_table_property(self, name: str) -> Any:
        if self._properties is None:
            return None
        return self._properties.get(name)

    def set_table_properties(self, properties: Properties | None) -> None:
        self._properties = properties

    def set_table_property(self, name: str, value: Any) -> None:
        self.get_table_properties()[name] = value

    def add_column(
        self,
        specification: dict[str, Any] | ColumnSpec | str | None = None,
        label: str | None = None,
        id: str | None = None,
    ) -> int:
        """Append a column, returns its index.

        See :meth:`insert_column` for the accepted arguments.
        """
        self.insert_column(len(self._columns), specification, label, id)
        return len(self._columns) - 1

    def insert_column(
        self,
        column_index: int,
        specification: dict[str, Any] | ColumnSpec | str | None = None,
        label: str | None = None,
        id: str | None = None,
    ) -> None:
        """Insert a new column, shifting the following ones to the right.

        Every row gets an empty cell for the new column.

        :param column_index: Where to insert the column.
        :param specification: The type of the column, or a dictionary
                              with ``type``, ``label``, ``id``, ``pattern``,
                              ``role`` and ``p`` keys. Defaults to ``string``.
        :param label: The label of the column, when the specification is a type.
        :param id: The id of the column, when the specification is a type.
        """
        if column_index != len(self._columns):
            validate_column_index(self, column_index)
            self._formatted_cache.clear()

        if isinstance(specification, ColumnSpec):
            specification = specification.to_dict()
        if specification is None or isinstance(specification, str):
            specification = {"type": specification, "label": label, "id": id}
        if not isinstance(specification, dict):
            raise InvalidSpecificationError(
                f'Invalid column specification, {specification!r}, for column "{column_index}".'
            )

        column_type = specification.get("type") or ColumnType.STRING.value
        if column_type not in COLUMN_TYPES:
            ref = specification.get("label") or specification.get("id") or column_index
            raise TypeMismatchError(f'Invalid type, {column_type}, for column "{ref}".')

        properties = specification.get("p")
        if specification.get("role"):
            properties = dict(properties or {}, role=specification["role"])
        column = ColumnSpec(
            type=ColumnType(column_type).value,
            id=specification.get("id") or "",
            label=specification.get("label") or "",
            pattern=specification.get("pattern"),
            p=copy.deepcopy(properties),
        )
        self._columns.insert(column_index, column)
        for row in self._rows:
            row.c.insert(column_index, Cell())
        self.invalidate_column_ref_map()

    def add_row(self, cells: list[Any] | None = None) -> int:
        """Append a row, returns its index.

        When ``cells`` is not provided the row is made of empty cells.
        """
        return self.insert_rows(len(self._rows), [cells])

    def add_rows(self, rows: int | list[list[Any] | None]) -> int:
        """Append rows, returns the index of the last one.

        See :meth:`insert_rows` for the accepted arguments.
        """
        return self.insert_rows(len(self._rows), rows)

    def insert_rows(self, row_index: int, rows: int | list[list[Any] | None]) -> int:
        """Insert rows, shifting the following ones down.

        All the rows are validated before any of them is inserted,
        so when one of them is rejected the table is left untouched.

        :param row_index: Where to insert the rows.
        :param rows: The number of empty rows to insert, or
                     a list of rows. Each row is a list of cells
                     in any form accepted by :func:`~chartdata.data.types.parse_cell`,
                     ``None`` stands for a row of empty cells.
        :returns: The index of the last inserted row.
        """
        if row_index != len(self._rows):
            validate_row_index(self, row_index)

        if isinstance(rows, int) and not isinstance(rows, bool):
            if rows < 0:
                raise InvalidSpecificationError(
                    f"Invalid number of rows: {rows}. Must be a non-negative integer."
                )
            rows = [None] * rows
        elif not isinstance(rows, (list, tuple)):
            raise InvalidSpecificationError(
                f"Invalid rows: {rows!r}. Must be a non-negative number or a list of rows."
            )

        number_of_columns = len(self._columns)
        new_rows = []
        for idx, cells in enumerate(rows):
            if cells is None:
                new_rows.append(Row(c=[Cell() for _ in range(number_of_columns)]))
                continue
            if not isinstance(cells, (list, tuple)):
                raise InvalidSpecificationError(
                    f"Row given with index {row_index + idx} is not a list."
                )
            if len(cells) != number_of_columns:
                raise ShapeError(
                    f"Row given with size different than {number_of_columns} "
                    "(the number of columns in the table)."
                )
            new_rows.append(
                Row(
                    c=[
                        self._check_cell(column_index, parse_cell(cell))
                        for column_index, cell in enumerate(cells)
                    ]
                )
            )

        if row_index != len(self._rows):
            self._formatted_cache.clear()
        for start in range(0, len(new_rows), self.MAX_ROWS_PER_INSERT):
            chunk = new_rows[start : start + self.MAX_ROWS_PER_INSERT]
            self._rows[row_index + start : row_index + start] = chunk
        if len(new_rows) > self.MAX_ROWS_PER_INSERT:
            logger.debug("Inserted %d rows at %d in chunks", len(new_rows), row_index)
        return row_index + len(new_rows) - 1

    def remove_row(self, row_index: int) -> None:
        self.remove_rows(row_index, 1)

    def remove_rows(self, row_index: int, count: int) -> None:
        """Remove ``count`` rows starting at ``row_index``.

        The count is clamped to the rows that actually exist.
        """
        if count <= 0:
            return
        validate_row_index(self, row_index)
        del self._rows[row_index : row_index + count]
        self._formatted_cache.clear()

    def remove_column(self, column_index: int) -> None:
        self.remove_columns(column_index, 1)

    def remove_columns(self, column_index: int, count: int) -> None:
        """Remove ``count`` columns starting at ``column_index``, and their cells."""
        if count <= 0:
            return
        validate_column_index(self, column_index)
        del self._columns[column_index : column_index + count]
        for row in self._rows:
            del row.c[column_index : column_index + count]
        self._formatted_cache.clear()
        self.invalidate_column_ref_map()

    def sort(self, sort_columns: Any) -> None:
        """Sort the rows in place.

        Accepts the same specifications as :meth:`get_sorted_rows`,
        custom comparison functions receive the row indices
        before the sort.
        """
        order = get_sorted_rows(self, sort_columns)
        self._rows = [self._rows[idx] for idx in order]
        self._formatted_cache.clear()
        logger.debug("Sorted %d rows by %r", len(order), sort_columns)

    def get_table_row_index(self, row_index: int) -> int:
        return row_index

    def get_underlying_table_row_index(self, row_index: int) -> int:
        validate_row_index(self, row_index)
        return row_index

    def get_underlying_table_column_index(self, column_index: int) -> int:
        validate_column_index(self, column_index)
        return column_index

    def to_pojo(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "cols": [column.to_dict() for column in self._columns],
            "rows": [row.to_dict() for row in self._rows],
        }
        if self._properties is not None:
            result["p"] = self._properties
        return copy.deepcopy(result)

    def clone(self) -> "DataTable":
        """A deep copy of the table, sharing nothing with the original."""
        return DataTable(self.to_pojo(), self.version)

    def to_data_table(self) -> "DataTable":
        return self.clone()
