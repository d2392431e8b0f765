import pytest

from chartdata.data import ComputedColumn, DataTable, DataView
from chartdata.data.predefined import PREDEFINED_FUNCTIONS
from chartdata.errors import (
    InvalidIndexError,
    InvalidSpecificationError,
    TypeMismatchError,
)


@pytest.fixture
def table():
    return DataTable(
        {
            "cols": [
                {"id": "name", "label": "Name", "type": "string"},
                {"id": "sales", "label": "Sales", "type": "number"},
                {"id": "region", "label": "Region", "type": "string"},
            ],
            "rows": [
                {"c": [{"v": "Alice"}, {"v": 100}, {"v": "north"}], "p": {"top": True}},
                {"c": [{"v": "Bob"}, {"v": None}, {"v": None}]},
                {"c": [{"v": "Carol"}, {"v": 300}, {"v": None}]},
                {"c": [{"v": "Dave"}, {"v": 50}, {"v": "south"}]},
            ],
            "p": {"title": "Sales"},
        }
    )


def _column(data, column):
    return [data.get_value(row, column) for row in range(data.get_number_of_rows())]


def test_default_view_is_transparent(table):
    view = DataView(table)
    assert view.get_number_of_rows() == table.get_number_of_rows()
    assert view.get_number_of_columns() == table.get_number_of_columns()
    for row in range(table.get_number_of_rows()):
        for col in range(table.get_number_of_columns()):
            assert view.get_value(row, col) == table.get_value(row, col)
            assert view.get_formatted_value(row, col) == table.get_formatted_value(row, col)
    assert view.get_column_id(1) == "sales"
    assert view.get_table_property("title") == "Sales"
    assert view.get_row_property(0, "top") is True


def test_view_sees_table_changes(table):
    view = DataView(table)
    table.set_value(0, 0, "Alicia")
    table.add_row(["Eve", 10, None])
    assert view.get_value(0, 0) == "Alicia"
    assert view.get_number_of_rows() == 5


def test_set_columns_by_reference(table):
    view = DataView(table)
    view.set_columns(["region", 0])
    assert view.get_view_columns() == [2, 0]
    assert view.get_column_label(0) == "Region"
    assert view.get_column_index("name") == 1


def test_set_columns_rejects_unknown_columns(table):
    view = DataView(table)
    with pytest.raises(InvalidIndexError):
        view.set_columns(["missing"])
    with pytest.raises(InvalidSpecificationError):
        view.set_columns([{"calc": "unknown", "type": "string"}])
    with pytest.raises(InvalidSpecificationError):
        view.set_columns([{"calc": lambda data, row: 1}])


def test_hide_columns(table):
    view = DataView(table)
    view.hide_columns([1])
    assert view.get_view_columns() == [0, 2]


def test_set_rows(table):
    view = DataView(table)
    view.set_rows([3, 0, 0])
    assert _column(view, 0) == ["Dave", "Alice", "Alice"]
    view.set_rows(1, 2)
    assert view.get_view_rows() == [1, 2]


@pytest.mark.parametrize(
    "rows, max_row",
    [([0, 4], None), (2, 1), (0, None), ([0], 1), ("0", None)],
)
def test_set_rows_errors(table, rows, max_row):
    view = DataView(table)
    with pytest.raises((InvalidIndexError, InvalidSpecificationError)):
        view.set_rows(rows, max_row)


def test_hide_rows(table):
    view = DataView(table)
    view.hide_rows([1, 2])
    assert _column(view, 0) == ["Alice", "Dave"]
    view.hide_rows(0, 0)
    assert _column(view, 0) == ["Dave"]


def test_index_resolution(table):
    view = DataView(table)
    view.set_columns([2, 0])
    view.set_rows([3, 1])
    assert view.get_table_row_index(0) == 3
    assert view.get_table_column_index(0) == 2
    assert view.get_view_row_index(1) == 1
    assert view.get_view_row_index(0) == -1
    assert view.get_view_column_index(0) == 1
    assert view.get_view_column_index(1) == -1


def test_nested_views_resolve_to_the_table(table):
    inner = DataView(table)
    inner.set_rows([2, 3])
    inner.set_columns([1, 0])
    outer = DataView(inner)
    outer.set_rows([1])
    outer.set_columns([1])
    assert outer.get_value(0, 0) == "Dave"
    assert outer.get_table_row_index(0) == 1
    assert outer.get_underlying_table_row_index(0) == 3
    assert outer.get_underlying_table_column_index(0) == 0


def test_computed_column_with_function(table):
    view = DataView(table)
    view.set_columns(
        [0, {"calc": lambda data, row: (data.get_value(row, 1) or 0) * 2, "type": "number", "id": "double"}]
    )
    assert _column(view, 1) == [200, 0, 600, 100]
    assert view.get_column_id(1) == "double"
    assert view.get_underlying_table_column_index(1) == -1


def test_computed_column_may_return_cells(table):
    view = DataView(table)
    view.set_columns([{"calc": lambda data, row: {"v": row, "f": f"#{row}"}, "type": "number"}])
    assert view.get_formatted_value(2, 0) == "#2"


def test_computed_column_type_is_checked(table):
    view = DataView(table)
    view.set_columns([{"calc": lambda data, row: "text", "type": "number"}])
    with pytest.raises(TypeMismatchError):
        view.get_value(0, 0)


def test_computed_cells_are_cached(table):
    calls = []

    def calc(data, row):
        calls.append(row)
        return row

    view = DataView(table)
    view.set_columns([ComputedColumn(calc=calc, type="number")])
    view.get_value(0, 0)
    view.get_value(0, 0)
    assert calls == [0]
    view.set_rows([1, 0])
    view.get_value(1, 0)
    assert calls == [0, 0]


@pytest.mark.parametrize(
    "spec, expected",
    [
        ({"calc": "emptyString", "type": "string"}, ["", "", "", ""]),
        ({"calc": "stringify", "sourceColumn": 1, "type": "string"}, ["100", "", "300", "50"]),
        ({"calc": "error", "sourceColumn": "sales", "magnitude": 5}, [105, None, 305, 55]),
        (
            {"calc": "error", "sourceColumn": 1, "magnitude": 10, "errorType": "percent"},
            [110, None, 330, 55],
        ),
        (
            {"calc": "mapFromSource", "sourceColumn": 2, "mapping": {"north": "N"}, "type": "string"},
            ["N", None, None, None],
        ),
        ({"sourceColumn": 1}, [100, None, 300, 50]),
        ({"calc": "fillFromTop", "sourceColumn": 2}, ["north", "north", "north", "south"]),
        ({"calc": "fillFromBottom", "sourceColumn": 2}, ["north", "south", "south", "south"]),
    ],
)
def test_predefined_functions(table, spec, expected):
    view = DataView(table)
    view.set_columns([spec])
    assert _column(view, 0) == expected


@pytest.mark.parametrize("calc", ["fillFromTop", "fillFromBottom"])
def test_fill_precompute_matches_row_by_row(table, calc):
    view = DataView(table)
    view.set_columns([{"calc": calc, "sourceColumn": 2}])
    column = view.get_view_columns()[0]
    expected = [PREDEFINED_FUNCTIONS[calc](table, row, column) for row in range(4)]
    assert _column(view, 0) == expected


def test_fill_on_restricted_view(table):
    view = DataView(table)
    view.set_rows([2, 1])
    view.set_columns([{"calc": "fillFromTop", "sourceColumn": 2}])
    assert _column(view, 0) == ["north", "north"]


def test_computed_cell_properties(table):
    view = DataView(table)
    view.set_columns([{"calc": "emptyString", "type": "string"}])
    view.set_property(0, 0, "color", "red")
    assert view.get_property(0, 0, "color") == "red"


def test_sort_and_filter_through_view(table):
    view = DataView(table)
    view.set_rows([0, 2, 3])
    assert view.get_sorted_rows("sales") == [2, 0, 1]
    assert view.get_filtered_rows([{"column": "sales", "min_value": 100}]) == [0, 1]
    assert view.get_column_range("sales") == {"min": 50, "max": 300}


def test_to_data_table(table):
    view = DataView(table)
    view.set_rows([3, 0])
    view.set_columns([0, {"calc": "stringify", "sourceColumn": 1, "type": "string", "label": "S"}])
    result = view.to_data_table()
    assert result.to_pojo() == {
        "cols": [
            {"id": "name", "label": "Name", "type": "string"},
            {"id": "", "label": "S", "type": "string", "p": {}},
        ],
        "rows": [
            {"c": [{"v": "Dave"}, {"v": "50"}]},
            {"c": [{"v": "Alice"}, {"v": "100"}], "p": {"top": True}},
        ],
        "p": {"title": "Sales"},
    }
    result.set_row_property(1, "top", False)
    assert table.get_row_property(0, "top") is True


def test_to_data_table_copies_duplicated_columns(table):
    table.set_column_property(0, "k", 1)
    view = DataView(table)
    view.set_columns([0, 0])
    result = view.to_data_table()
    result.set_column_property(0, "k", 2)
    assert result.get_column_property(1, "k") == 1
    assert table.get_column_property(0, "k") == 1


def test_json_round_trip(table):
    view = DataView(table)
    view.set_rows([1, 3])
    view.set_columns([0, {"calc": "error", "sourceColumn": 1, "magnitude": 1}])
    restored = DataView.from_json(table, view.to_json())
    assert restored.to_pojo() == view.to_pojo()
    assert _column(restored, 1) == _column(view, 1)


def test_to_pojo_skips_function_columns(table):
    view = DataView(table)
    view.set_columns([0, {"calc": lambda data, row: 1, "type": "number"}])
    assert view.to_pojo() == {"columns": [0]}
