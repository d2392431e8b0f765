"""Non materializing projections of tables.

A :class:`DataView` wraps a table, or another view,
and exposes a subset of its rows and columns, possibly
reordered, without copying any data. Views can also add
computed columns, whose cells are derived from the
wrapped data on demand.

Given a table like::

    name    | salary
    ------- | ------
    Alice   | 1,000
    Bob     | 1,500
    Charlie | 800

a view can hide the salary of Bob and add a
column with a bonus computed from the salary:

    >>> from chartdata.data import DataTable
    >>> table = DataTable({
    ...     "cols": [{"id": "name", "type": "string"}, {"id": "salary", "type": "number"}],
    ...     "rows": [{"c": [{"v": "Alice"}, {"v": 1000}]},
    ...              {"c": [{"v": "Bob"}, {"v": 1500}]},
    ...              {"c": [{"v": "Charlie"}, {"v": 800}]}],
    ... })
    >>> view = DataView(table)
    >>> view.set_columns([
    ...     "name",
    ...     {"calc": "error", "sourceColumn": "salary", "magnitude": 10,
    ...      "errorType": "percent", "id": "bonus"},
    ... ])
    >>> view.hide_rows([1])
    >>> print(view)
    name    | bonus
    ------- | -----
    Alice   | 1,100
    Charlie | 880

Each view row and column knows where it comes from,
through any number of nested views:

    >>> view.get_underlying_table_row_index(1)
    2
    >>> view.get_underlying_table_column_index(1)
    1

Views are live: changes to the wrapped table are visible
through the view, but the cells of computed columns are
cached and only recomputed when the view columns or rows
are changed. The wrapped table must outlive the view.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ..errors import InvalidSpecificationError, TypeMismatchError
from ..utils.inspect import get_qualname
from .base import AbstractDataTable, Formatter
from .datatable import DataTable
from .formatting import format_value
from .predefined import PREDEFINED_FUNCTIONS
from .serialization import deserialize, serialize
from .types import (
    COLUMN_TYPES,
    Cell,
    Properties,
    check_value_type,
    normalize_value,
    parse_cell,
)
from .validation import (
    validate_column_index,
    validate_column_set,
    validate_row_index,
    validate_row_indices,
)

__all__ = ("DataView", "ComputedColumn")

logger = logging.getLogger(__name__)

CalcFunction = Callable[[AbstractDataTable, int], Any]
FILL_FUNCTIONS = ("fillFromTop", "fillFromBottom")


@dataclass
class ComputedColumn:
    """A view column whose cells are computed out of the wrapped data.

    :param calc: Name of one of the :mod:`~chartdata.data.predefined`
                 functions or a callable receiving the wrapped data
                 and a row index, returning the value or the cell.
    :param type: The type of the computed values.
    :param source_column: The column of the wrapped data the
                          predefined functions work on.
    :param magnitude: Option of the ``error`` function.
    :param error_type: Option of the ``error`` function,
                       ``"constant"`` or ``"percent"``.
    :param mapping: Option of the ``mapFromSource`` function.
    """

    calc: str | CalcFunction
    type: str
    source_column: int | None = None
    label: str = ""
    id: str = ""
    p: Properties = field(default_factory=dict)
    magnitude: float | None = None
    error_type: str = "constant"
    mapping: dict[str, Any] | None = None

    def __str__(self) -> str:
        calc = self.calc if isinstance(self.calc, str) else get_qualname(self.calc)
        return f"ComputedColumn(calc={calc}, type={self.type}, source_column={self.source_column})"

    @classmethod
    def from_spec(cls, data: AbstractDataTable, spec: dict[str, Any]) -> "ComputedColumn":
        """Build a computed column out of its dictionary description.

        Accepts both the wire format names (``sourceColumn``, ``errorType``,
        ``properties``) and the Python ones. When a source column is provided
        ``calc`` defaults to ``identity`` and ``type`` to the source column type.
        """
        spec = copy.deepcopy(spec)
        properties = spec.get("p", spec.get("properties")) or {}
        if spec.get("role"):
            properties["role"] = spec["role"]

        source_column = spec.get("sourceColumn", spec.get("source_column"))
        if isinstance(source_column, str):
            source_column = data.get_column_index(source_column)
        calc = spec.get("calc")
        column_type = spec.get("type")
        if source_column is not None:
            validate_column_index(data, source_column)
            calc = calc or "identity"
            column_type = column_type or data.get_column_type(source_column)
        if column_type not in COLUMN_TYPES:
            raise InvalidSpecificationError(
                f'"type" must be specified as a valid column type, got {column_type!r}.'
            )
        return cls(
            calc=calc,
            type=column_type,
            source_column=source_column,
            label=spec.get("label") or "",
            id=spec.get("id") or "",
            p=properties,
            magnitude=spec.get("magnitude"),
            error_type=spec.get("errorType", spec.get("error_type")) or "constant",
            mapping=spec.get("mapping"),
        )

    def to_spec(self) -> dict[str, Any]:
        """Dictionary description in wire format, omitting unset options."""
        spec: dict[str, Any] = {"calc": self.calc, "type": self.type}
        if self.source_column is not None:
            spec["sourceColumn"] = self.source_column
        if self.label:
            spec["label"] = self.label
        if self.id:
            spec["id"] = self.id
        if self.p:
            spec["p"] = copy.deepcopy(self.p)
        if self.magnitude is not None:
            spec["magnitude"] = self.magnitude
            spec["errorType"] = self.error_type
        if self.mapping is not None:
            spec["mapping"] = copy.deepcopy(self.mapping)
        return spec


ViewColumn = int | ComputedColumn


class DataView(AbstractDataTable):
    """A projection of the rows and columns of a table or of another view.

    By default the view exposes all the columns and
    all the rows of the wrapped data, in their order.

    :param data: The table or view to wrap.
    """

    def __init__(self, data: AbstractDataTable) -> None:
        super().__init__()
        self._data = data
        self._columns: list[ViewColumn] = list(range(data.get_number_of_columns()))
        self._rows: list[int] = []
        self._is_all_rows = True
        self._calc_cache: dict[int, dict[int, Cell]] = {}
        self._calc_cache_dirty = True

    def __repr__(self) -> str:
        columns = ", ".join(str(column) for column in self._columns)
        rows = "all" if self._is_all_rows else len(self._rows)
        return f"DataView(columns=[{columns}], rows={rows}, {self._data!r})"

    def get_data_table(self) -> AbstractDataTable:
        """The wrapped table or view."""
        return self._data

    def _invalidate_calc_cache(self) -> None:
        self._calc_cache_dirty = True
        self.invalidate_column_ref_map()

    def set_columns(self, columns: list[int | str | dict[str, Any] | ComputedColumn]) -> None:
        """Choose the columns exposed by the view, in their order.

        Each entry is a column of the wrapped data, as index, id or label,
        or a computed column, as :class:`ComputedColumn` or dictionary::

            view.set_columns([1, "name", {"calc": "stringify", "sourceColumn": 0, "type": "string"}])
        """
        columns = [
            column.to_spec() if isinstance(column, ComputedColumn) else column
            for column in columns
        ]
        validate_column_set(self._data, columns)
        self._columns = [
            ComputedColumn.from_spec(self._data, column)
            if isinstance(column, dict)
            else self._data.get_column_index(column)
            for column in columns
        ]
        self._invalidate_calc_cache()

    def get_view_columns(self) -> list[ViewColumn]:
        """A copy of the view columns, indices and computed columns."""
        return copy.deepcopy(self._columns)

    def hide_columns(self, column_indices: list[int]) -> None:
        """Remove the given columns of the wrapped data from the view."""
        self.set_columns(
            [
                column
                for column in self._columns
                if isinstance(column, ComputedColumn) or column not in column_indices
            ]
        )

    def _standardize_row_indices(self, rows: list[int] | int, max_row: int | None) -> list[int]:
        if isinstance(rows, (list, tuple)):
            if max_row is not None:
                raise InvalidSpecificationError(
                    "If the first parameter is a list, no second parameter is expected."
                )
            validate_row_indices(self._data, rows)
            return list(rows)
        if isinstance(rows, int) and not isinstance(rows, bool):
            if not isinstance(max_row, int):
                raise InvalidSpecificationError(
                    "If first parameter is a number, second parameter must be "
                    "specified and be a number."
                )
            if rows > max_row:
                raise InvalidSpecificationError(
                    "The first parameter (min) must be smaller than or equal "
                    "to the second parameter (max)."
                )
            validate_row_index(self._data, rows)
            validate_row_index(self._data, max_row)
            return list(range(rows, max_row + 1))
        raise InvalidSpecificationError("First parameter must be a number or a list.")

    def set_rows(self, rows: list[int] | int, max_row: int | None = None) -> None:
        """Choose the rows exposed by the view, in their order.

        Accepts a list of row indices of the wrapped data,
        which can repeat, or a ``min`` and ``max`` row index.
        """
        self._rows = self._standardize_row_indices(rows, max_row)
        self._is_all_rows = False
        self._invalidate_calc_cache()

    def get_view_rows(self) -> list[int]:
        if self._is_all_rows:
            return list(range(self._data.get_number_of_rows()))
        return list(self._rows)

    def hide_rows(self, rows: list[int] | int, max_row: int | None = None) -> None:
        """Remove rows of the wrapped data from the view.

        Accepts the same arguments as :meth:`set_rows`.
        """
        hidden = set(self._standardize_row_indices(rows, max_row))
        self.set_rows([row for row in self.get_view_rows() if row not in hidden])

    def get_view_column_index(self, table_column_index: int) -> int:
        """Index of the first view column showing a column of the wrapped data, or ``-1``."""
        for idx, column in enumerate(self._columns):
            if column == table_column_index:
                return idx
            if (
                isinstance(column, ComputedColumn)
                and column.source_column == table_column_index
            ):
                return idx
        return -1

    def get_view_row_index(self, table_row_index: int) -> int:
        """Index of the first view row showing a row of the wrapped data, or ``-1``."""
        if self._is_all_rows:
            if 0 <= table_row_index < self._data.get_number_of_rows():
                return table_row_index
            return -1
        try:
            return self._rows.index(table_row_index)
        except ValueError:
            return -1

    def get_table_column_index(self, column_index: int) -> int:
        """Index in the wrapped data of a view column.

        Computed columns report their source column,
        or ``-1`` when they have none.
        """
        validate_column_index(self, column_index)
        column = self._columns[column_index]
        if isinstance(column, ComputedColumn):
            return -1 if column.source_column is None else column.source_column
        return column

    def get_underlying_table_column_index(self, column_index: int) -> int:
        table_column_index = self.get_table_column_index(column_index)
        if table_column_index == -1:
            return -1
        return self._data.get_underlying_table_column_index(table_column_index)

    def get_table_row_index(self, row_index: int) -> int:
        validate_row_index(self, row_index)
        if self._is_all_rows:
            return row_index
        return self._rows[row_index]

    def get_underlying_table_row_index(self, row_index: int) -> int:
        return self._data.get_underlying_table_row_index(self.get_table_row_index(row_index))

    def get_number_of_rows(self) -> int:
        if self._is_all_rows:
            return self._data.get_number_of_rows()
        return len(self._rows)

    def get_number_of_columns(self) -> int:
        return len(self._columns)

    def _get_column(self, column_index: int) -> ViewColumn:
        validate_column_index(self, column_index)
        return self._columns[column_index]

    def get_column_id(self, column_index: int) -> str:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            return column.id
        return self._data.get_column_id(column)

    def get_column_label(self, column_index: int) -> str:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            return column.label
        return self._data.get_column_label(column)

    def get_column_pattern(self, column_index: int) -> str | None:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            return None
        return self._data.get_column_pattern(column)

    def get_column_type(self, column_index: int) -> str:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            return column.type
        return self._data.get_column_type(column)

    def get_column_properties(self, column_index: int) -> Properties:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            return column.p
        return self._data.get_column_properties(column)

    def get_cell(self, row_index: int, column_index: int) -> Cell:
        column = self._get_column(column_index)
        inner_row_index = self.get_table_row_index(row_index)
        if isinstance(column, ComputedColumn):
            return self._calc_cell(inner_row_index, column_index)
        return self._data.get_cell(inner_row_index, column)

    def _calc_cell(self, inner_row_index: int, column_index: int) -> Cell:
        if self._calc_cache_dirty:
            self._calc_cache = {}
            self._calc_cache_dirty = False
        cache = self._calc_cache.setdefault(column_index, {})
        cell = cache.get(inner_row_index)
        if cell is not None:
            return cell

        column = self._columns[column_index]
        if column.calc in FILL_FUNCTIONS and column.source_column is not None:
            self._fill_column(column, cache)
            return cache[inner_row_index]

        if isinstance(column.calc, str):
            result = PREDEFINED_FUNCTIONS[column.calc](self._data, inner_row_index, column)
        else:
            result = column.calc(self._data, inner_row_index)
        cell = self._check_calc_cell(column, parse_cell(result))
        cache[inner_row_index] = cell
        return cell

    def _check_calc_cell(self, column: ComputedColumn, cell: Cell) -> Cell:
        if not check_value_type(cell.v, column.type):
            raise TypeMismatchError(
                f"Type mismatch. Value {cell.v!r} does not match type {column.type}."
            )
        cell.v = normalize_value(cell.v, column.type)
        return cell

    def _fill_column(self, column: ComputedColumn, cache: dict[int, Cell]) -> None:
        """Compute all the cells of a fill column in a single pass over the wrapped data."""
        number_of_rows = self._data.get_number_of_rows()
        rows = range(number_of_rows)
        if column.calc == "fillFromBottom":
            rows = reversed(rows)
        fill_value = None
        for row in rows:
            value = self._data.get_value(row, column.source_column)
            if value is not None:
                fill_value = value
            cache[row] = self._check_calc_cell(column, Cell(v=fill_value))
        logger.debug("Precomputed %d cells of %s", number_of_rows, column)

    def get_formatted_value(
        self, row_index: int, column_index: int, formatter: Formatter | None = None
    ) -> str:
        column = self._get_column(column_index)
        inner_row_index = self.get_table_row_index(row_index)
        if not isinstance(column, ComputedColumn):
            return self._data.get_formatted_value(inner_row_index, column, formatter)
        cell = self._calc_cell(inner_row_index, column_index)
        if cell.f is not None:
            return cell.f
        if formatter is not None:
            return formatter(cell.v)
        cell.f = format_value(cell.v, column.type)
        return cell.f

    def set_formatted_value(
        self, row_index: int, column_index: int, formatted_value: str | None
    ) -> None:
        column = self._get_column(column_index)
        inner_row_index = self.get_table_row_index(row_index)
        if isinstance(column, ComputedColumn):
            self._calc_cell(inner_row_index, column_index).f = formatted_value
        else:
            self._data.set_formatted_value(inner_row_index, column, formatted_value)

    def get_properties(self, row_index: int, column_index: int) -> Properties:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            return super().get_properties(row_index, column_index)
        return self._data.get_properties(self.get_table_row_index(row_index), column)

    def set_property(self, row_index: int, column_index: int, name: str, value: Any) -> None:
        column = self._get_column(column_index)
        if isinstance(column, ComputedColumn):
            super().set_property(row_index, column_index, name, value)
        else:
            self._data.set_property(self.get_table_row_index(row_index), column, name, value)

    def get_row_properties(self, row_index: int) -> Properties:
        return self._data.get_row_properties(self.get_table_row_index(row_index))

    def get_row_property(self, row_index: int, name: str) -> Any:
        return self._data.get_row_property(self.get_table_row_index(row_index), name)

    def get_table_properties(self) -> Properties:
        return self._data.get_table_properties()

    def get_table_property(self, name: str) -> Any:
        return self._data.get_table_property(name)

    def to_data_table(self) -> DataTable:
        """Materialize the view into a new table.

        Computed columns become plain columns holding
        the computed values.
        """
        source = self._data.to_data_table().to_pojo()
        columns = []
        for column in self._columns:
            if isinstance(column, ComputedColumn):
                columns.append(
                    {"id": column.id, "label": column.label, "type": column.type, "p": copy.deepcopy(column.p)}
                )
            else:
                columns.append(copy.deepcopy(source["cols"][column]))

        rows = []
        for row_index in range(self.get_number_of_rows()):
            source_row = source["rows"][self.get_table_row_index(row_index)]
            cells = [
                {"v": self.get_value(row_index, column_index)}
                if isinstance(column, ComputedColumn)
                else copy.deepcopy(source_row["c"][column])
                for column_index, column in enumerate(self._columns)
            ]
            row = {"c": cells}
            if source_row.get("p") is not None:
                row["p"] = copy.deepcopy(source_row["p"])
            rows.append(row)

        result: dict[str, Any] = {"cols": columns, "rows": rows}
        if source.get("p") is not None:
            result["p"] = source["p"]
        return DataTable(result)

    def to_pojo(self) -> dict[str, Any]:
        """The view definition: its columns and, when restricted, its rows.

        Computed columns using a callable are left out,
        as they can't be serialized.
        """
        result: dict[str, Any] = {}
        columns = [
            column.to_spec() if isinstance(column, ComputedColumn) else column
            for column in self._columns
            if not isinstance(column, ComputedColumn) or isinstance(column.calc, str)
        ]
        if columns:
            result["columns"] = columns
        if not self._is_all_rows:
            result["rows"] = list(self._rows)
        return result

    def to_json(self) -> str:
        return serialize(self.to_pojo())

    @classmethod
    def from_json(cls, data: AbstractDataTable, view: str | dict[str, Any]) -> "DataView":
        """Rebuild a view over ``data`` from the output of :meth:`to_json` or :meth:`to_pojo`."""
        if isinstance(view, str):
            view = deserialize(view)
        result = cls(data)
        if view.get("columns") is not None:
            result.set_columns(view["columns"])
        if view.get("rows") is not None:
            result.set_rows(view["rows"])
        return result
