"""Base class and interface shared by tables and views.

This module defines the capability set that every
table-like object provides. Both the storage,
:class:`~chartdata.data.DataTable`, and the projections
over it, :class:`~chartdata.data.DataView`, implement it,
so that any algorithm written in terms of
:class:`AbstractDataTable` works on both.

Rows and columns are always addressed by their index,
starting at ``0``. Columns can also be referred by their
id or label, which are resolved to an index by
:meth:`AbstractDataTable.get_column_index`.

The shared algorithms, sorting, filtering, ranges
and distinct values, are implemented once in terms
of the abstract methods and exposed by the base class::

    table.get_sorted_rows({"column": "price", "desc": True})
    table.get_filtered_rows([{"column": "city", "value": "Rome"}])
    table.get_column_range("price")
    table.get_distinct_values("city")
"""

import abc
from typing import TYPE_CHECKING, Any, Callable

import pyarrow as pa

from ..errors import TypeMismatchError
from ..utils.tabulate import tabulate
from . import export, filtering, sorting
from .serialization import serialize
from .types import Cell, ColumnSpec, ColumnType, Properties
from .validation import validate_column_reference

if TYPE_CHECKING:
    from .datatable import DataTable

__all__ = ("AbstractDataTable", "ColumnRef")

ColumnRef = int | str
Formatter = Callable[[Any], str]


class AbstractDataTable(abc.ABC):
    """A table-like object exposing typed columns and rows of cells.

    Subclasses provide access to the columns metadata and cells,
    while the base class implements column references resolution,
    the shared algorithms and the conversions to other formats.

    A minimal read only implementation looks like::

        class SingleValue(AbstractDataTable):
            def get_number_of_rows(self):
                return 1

            def get_number_of_columns(self):
                return 1

            def get_column_id(self, column_index):
                return "answer"

            ...
    """

    def __init__(self) -> None:
        self._column_ref_map: dict[str, int] = {}
        self._column_ref_map_dirty = True

    @abc.abstractmethod
    def get_number_of_rows(self) -> int: ...

    @abc.abstractmethod
    def get_number_of_columns(self) -> int: ...

    @abc.abstractmethod
    def get_column_id(self, column_index: int) -> str: ...

    @abc.abstractmethod
    def get_column_label(self, column_index: int) -> str: ...

    @abc.abstractmethod
    def get_column_pattern(self, column_index: int) -> str | None: ...

    @abc.abstractmethod
    def get_column_type(self, column_index: int) -> str: ...

    @abc.abstractmethod
    def get_column_properties(self, column_index: int) -> Properties:
        """Properties of the column, created empty if the column has none."""
        ...

    @abc.abstractmethod
    def get_cell(self, row_index: int, column_index: int) -> Cell:
        """The cell at the given position.

        The returned cell is the one held by the object,
        changing it changes the data.
        """
        ...

    @abc.abstractmethod
    def get_formatted_value(
        self, row_index: int, column_index: int, formatter: Formatter | None = None
    ) -> str:
        """The text representation of a cell.

        The explicit formatted value of the cell is preferred,
        otherwise a default one is computed based on the
        type of the column, or through ``formatter`` if provided.
        """
        ...

    @abc.abstractmethod
    def set_formatted_value(
        self, row_index: int, column_index: int, formatted_value: str | None
    ) -> None: ...

    @abc.abstractmethod
    def get_row_properties(self, row_index: int) -> Properties: ...

    @abc.abstractmethod
    def get_table_properties(self) -> Properties: ...

    @abc.abstractmethod
    def get_table_row_index(self, row_index: int) -> int:
        """Index of the row in the object directly wrapped, if any."""
        ...

    @abc.abstractmethod
    def get_underlying_table_row_index(self, row_index: int) -> int:
        """Index of the row in the storage at the bottom of a chain of views."""
        ...

    @abc.abstractmethod
    def get_underlying_table_column_index(self, column_index: int) -> int:
        """Index of the column in the storage, ``-1`` for computed columns."""
        ...

    @abc.abstractmethod
    def to_data_table(self) -> "DataTable":
        """Materialize the data into a new, independent, table."""
        ...

    @abc.abstractmethod
    def to_pojo(self) -> dict[str, Any]:
        """Plain dictionaries and lists representation, ready to be serialized."""
        ...

    def __str__(self) -> str:
        return tabulate(self)

    def get_columns(self) -> list[ColumnSpec]:
        """Description of all the columns."""
        return [
            ColumnSpec(
                type=self.get_column_type(idx),
                id=self.get_column_id(idx),
                label=self.get_column_label(idx),
                pattern=self.get_column_pattern(idx),
                p=self.get_column_properties(idx),
            )
            for idx in range(self.get_number_of_columns())
        ]

    def get_column_role(self, column_index: int) -> str:
        return self.get_column_property(column_index, "role") or ""

    def get_column_property(self, column_index: int, name: str) -> Any:
        return self.get_column_properties(column_index).get(name)

    def get_column_index(self, column: ColumnRef) -> int:
        """Resolve a column reference to the index of the column.

        Integers are returned when in range, strings are looked up
        between the ids of the columns first and the labels after.
        When multiple columns share an id or label the first one wins.

        Returns ``-1`` when there is no such column.
        """
        if isinstance(column, int) and not isinstance(column, bool):
            return column if 0 <= column < self.get_number_of_columns() else -1
        if isinstance(column, str):
            if self._column_ref_map_dirty:
                self.rebuild_column_ref_map()
            return self._column_ref_map.get(column, -1)
        return -1

    def invalidate_column_ref_map(self) -> None:
        """Mark ids and labels lookup as outdated, it will be rebuilt on next use."""
        self._column_ref_map_dirty = True

    def rebuild_column_ref_map(self) -> None:
        ref_map: dict[str, int] = {}
        number_of_columns = self.get_number_of_columns()
        for get_ref in (self.get_column_id, self.get_column_label):
            for idx in range(number_of_columns):
                ref = get_ref(idx)
                if ref and ref not in ref_map:
                    ref_map[ref] = idx
        self._column_ref_map = ref_map
        self._column_ref_map_dirty = False

    def get_value(self, row_index: int, column_index: int) -> Any:
        return self.get_cell(row_index, column_index).v

    def get_string_value(self, row_index: int, column_index: int) -> str | None:
        """Value of a cell of a ``string`` column."""
        column_type = self.get_column_type(column_index)
        if column_type != ColumnType.STRING:
            raise TypeMismatchError(
                f"Column {column_index} must be of type string, but is {column_type}."
            )
        return self.get_value(row_index, column_index)

    def get_date_value(self, row_index: int, column_index: int) -> Any:
        """Value of a cell of a ``date`` or ``datetime`` column."""
        column_type = self.get_column_type(column_index)
        if column_type not in (ColumnType.DATE, ColumnType.DATETIME):
            raise TypeMismatchError(
                f"Column {column_index} must be of type date or datetime, "
                f"but is {column_type}."
            )
        return self.get_value(row_index, column_index)

    def get_properties(self, row_index: int, column_index: int) -> Properties:
        """Properties of a cell, created empty if the cell has none."""
        cell = self.get_cell(row_index, column_index)
        if cell.p is None:
            cell.p = {}
        return cell.p

    def get_property(self, row_index: int, column_index: int, name: str) -> Any:
        properties = self.get_cell(row_index, column_index).p
        if properties is None:
            return None
        return properties.get(name)

    def set_property(self, row_index: int, column_index: int, name: str, value: Any) -> None:
        self.get_properties(row_index, column_index)[name] = value

    def get_row_property(self, row_index: int, name: str) -> Any:
        return self.get_row_properties(row_index).get(name)

    def get_table_property(self, name: str) -> Any:
        return self.get_table_properties().get(name)

    def format(self, column: ColumnRef, formatter: Formatter | None = None) -> None:
        """Set the formatted value of every cell of a column.

        :param column: The column to format.
        :param formatter: Receives the value of each cell and returns its text,
                          when omitted the default formatting is applied.
        """
        column_index = validate_column_reference(self, column)
        for row_index in range(self.get_number_of_rows()):
            if formatter is None:
                text = self.get_formatted_value(row_index, column_index)
            else:
                text = formatter(self.get_value(row_index, column_index))
            self.set_formatted_value(row_index, column_index, text)

    def get_sorted_rows(self, sort_columns: Any) -> list[int]:
        """Row indices in the order defined by ``sort_columns``.

        See :mod:`chartdata.data.sorting` for the accepted specifications.
        """
        return sorting.get_sorted_rows(self, sort_columns)

    def get_filtered_rows(self, column_filters: Any) -> list[int]:
        """Indices of the rows matching ``column_filters``.

        See :mod:`chartdata.data.filtering` for the accepted specifications.
        """
        return filtering.get_filtered_rows(self, column_filters)

    def get_column_range(self, column: ColumnRef) -> dict[str, Any]:
        return filtering.get_column_range(self, column)

    def get_distinct_values(self, column: ColumnRef) -> list[Any]:
        return filtering.get_distinct_values(self, column)

    def to_json(self) -> str:
        """Serialize to the JSON wire format.

        Fails for tables with ``function`` columns,
        as functions can't be serialized.
        """
        for column_index in range(self.get_number_of_columns()):
            if self.get_column_type(column_index) == ColumnType.FUNCTION:
                raise TypeMismatchError(
                    f"Column {column_index} of type function can't be serialized."
                )
        return serialize(self.to_pojo())

    def to_csv(self) -> str:
        return export.data_table_to_csv(self)

    def to_arrow(self) -> pa.Table:
        return export.data_table_to_arrow(self)
