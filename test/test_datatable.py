import datetime
import json

import pytest

from chartdata.data import DataTable
from chartdata.errors import (
    InvalidIndexError,
    InvalidSpecificationError,
    ShapeError,
    TypeMismatchError,
)

TEST_DATA = {
    "cols": [
        {"id": "city", "label": "City", "type": "string"},
        {"id": "population", "label": "Population", "type": "number"},
        {"id": "founded", "label": "Founded", "type": "date"},
    ],
    "rows": [
        {"c": [{"v": "Rome"}, {"v": 2873000}, {"v": "Date(1861, 2, 17)"}]},
        {"c": [{"v": "Milan"}, {"v": 1352000, "f": "1.3M"}, None]},
        {"c": [{"v": "Turin", "p": {"style": "bold"}}, {"v": 848000}]},
    ],
    "p": {"source": "census"},
}


@pytest.fixture
def table():
    return DataTable(json.loads(json.dumps(TEST_DATA)))


def test_construct_from_wire_format(table):
    assert table.get_number_of_rows() == 3
    assert table.get_number_of_columns() == 3
    assert table.get_column_id(1) == "population"
    assert table.get_column_label(1) == "Population"
    assert table.get_column_type(2) == "date"
    assert table.get_value(1, 1) == 1352000
    assert table.get_formatted_value(1, 1) == "1.3M"
    assert table.get_table_property("source") == "census"
    assert table.get_property(2, 0, "style") == "bold"


def test_construct_pads_short_rows(table):
    assert table.get_value(2, 2) is None
    assert table.get_value(1, 2) is None


def test_construct_from_json_text():
    table = DataTable(json.dumps(TEST_DATA))
    assert table.get_value(0, 0) == "Rome"


def test_construct_rejects_long_rows():
    with pytest.raises(ShapeError):
        DataTable({"cols": [{"type": "string"}], "rows": [{"c": ["a", "b"]}]})


def test_construct_rejects_mismatching_values():
    with pytest.raises(TypeMismatchError):
        DataTable({"cols": [{"type": "number"}], "rows": [{"c": ["a"]}]})


def test_construct_rejects_unknown_types():
    with pytest.raises(TypeMismatchError):
        DataTable({"cols": [{"type": "currency"}]})


def test_date_literals_are_revived():
    table = DataTable(
        {
            "cols": [{"type": "date"}, {"type": "datetime"}],
            "rows": [{"c": ["Date(2009, 7, 1)", "Date(2000, 5, 5, 17, 20, 30)"]}],
        }
    )
    assert table.get_value(0, 0) == datetime.date(2009, 8, 1)
    assert table.get_value(0, 1) == datetime.datetime(2000, 6, 5, 17, 20, 30)


def test_wire_format_round_trip(table):
    copy = DataTable(table.to_json())
    assert copy.to_pojo() == table.to_pojo()


def test_version():
    assert DataTable().version == "0.6"
    assert DataTable(version="0.5").version == "0.5"


def test_column_reference_resolution(table):
    assert table.get_column_index("population") == 1
    assert table.get_column_index("Founded") == 2
    assert table.get_column_index(0) == 0
    assert table.get_column_index("missing") == -1


@pytest.mark.parametrize("column", [3, 99, -1])
def test_column_reference_out_of_range(table, column):
    assert table.get_column_index(column) == -1


def test_construct_copies_table_properties():
    data = {"cols": [{"type": "string", "p": {"width": 1}}], "p": {"title": "a"}}
    table = DataTable(data)
    table.set_table_property("title", "b")
    table.set_column_property(0, "width", 2)
    assert data["p"] == {"title": "a"}
    assert data["cols"][0]["p"] == {"width": 1}


def test_column_reference_follows_label_changes(table):
    table.set_column_label(0, "Town")
    assert table.get_column_index("Town") == 0
    assert table.get_column_index("City") == -1


def test_add_column_accepts_specification():
    table = DataTable()
    idx = table.add_column({"type": "number", "id": "n", "role": "annotation", "p": {"a": 1}})
    assert idx == 0
    assert table.get_column_role(0) == "annotation"
    assert table.get_column_property(0, "a") == 1


def test_insert_column_adds_empty_cells(table):
    table.insert_column(1, "boolean", "Capital", "capital")
    assert table.get_number_of_columns() == 4
    assert table.get_column_id(2) == "population"
    assert [table.get_value(row, 1) for row in range(3)] == [None, None, None]


def test_insert_rows_returns_last_index(table):
    assert table.add_row(["Naples", 909000, None]) == 3
    assert table.add_rows(2) == 5
    assert table.get_value(5, 0) is None


def test_insert_rows_is_all_or_nothing(table):
    with pytest.raises(TypeMismatchError):
        table.add_rows([["Naples", 909000, None], ["Genoa", "many", None]])
    assert table.get_number_of_rows() == 3


def test_insert_rows_checks_row_size(table):
    with pytest.raises(ShapeError):
        table.add_rows([["Naples", 909000]])


def test_insert_rows_rejects_negative_count(table):
    with pytest.raises(InvalidSpecificationError):
        table.add_rows(-1)


def test_insert_rows_in_chunks(monkeypatch):
    monkeypatch.setattr(DataTable, "MAX_ROWS_PER_INSERT", 3)
    table = DataTable()
    table.add_column("number")
    table.add_rows([[0], [1]])
    table.insert_rows(1, [[v] for v in range(10, 17)])
    values = [table.get_value(row, 0) for row in range(table.get_number_of_rows())]
    assert values == [0, 10, 11, 12, 13, 14, 15, 16, 1]


def test_set_cell_converts_numeric_strings(table):
    table.set_cell(0, 1, "42.5")
    assert table.get_value(0, 1) == 42.5
    with pytest.raises(TypeMismatchError):
        table.set_cell(0, 1, "not a number")


def test_set_cell_leaves_unspecified_members(table):
    table.set_cell(1, 1, formatted_value="lots")
    assert table.get_value(1, 1) == 1352000
    assert table.get_formatted_value(1, 1) == "lots"


@pytest.mark.parametrize("formatted_value", [5, ["a"]])
def test_set_cell_rejects_non_string_formatted_values(table, formatted_value):
    with pytest.raises(TypeMismatchError):
        table.set_formatted_value(0, 0, formatted_value)
    assert table.get_formatted_value(0, 0) == "Rome"


def test_formatted_value_cache_is_invalidated(table):
    assert table.get_formatted_value(0, 1) == "2,873,000"
    table.set_value(0, 1, 10)
    assert table.get_formatted_value(0, 1) == "10"
    table.sort({"column": 1})
    assert table.get_formatted_value(0, 1) == "10"
    assert table.get_formatted_value(2, 1) == "1.3M"


def test_formatted_value_with_formatter(table):
    assert table.get_formatted_value(0, 1, lambda v: f"{v / 1e6:.1f}M") == "2.9M"
    assert table.get_formatted_value(0, 1) == "2,873,000"


def test_format_column(table):
    table.format("population", lambda v: str(v // 1000))
    assert table.get_formatted_value(0, 1) == "2873"
    assert table.to_pojo()["rows"][0]["c"][1] == {"v": 2873000, "f": "2873"}


def test_datetime_columns_store_dates_as_midnight():
    table = DataTable()
    table.add_column("datetime")
    table.add_row([datetime.date(2020, 1, 2)])
    assert table.get_value(0, 0) == datetime.datetime(2020, 1, 2)


def test_typed_getters(table):
    assert table.get_string_value(0, 0) == "Rome"
    with pytest.raises(TypeMismatchError):
        table.get_string_value(0, 1)
    with pytest.raises(TypeMismatchError):
        table.get_date_value(0, 0)


def test_properties_are_created_on_demand(table):
    assert table.get_row_property(0, "selected") is None
    table.set_row_property(0, "selected", True)
    assert table.get_row_properties(0) == {"selected": True}
    table.set_property(0, 0, "color", "red")
    assert table.get_properties(0, 0) == {"color": "red"}
    table.set_column_property(0, "width", 10)
    assert table.get_column_properties(0) == {"width": 10}


def test_invalid_indices(table):
    with pytest.raises(InvalidIndexError):
        table.get_value(3, 0)
    with pytest.raises(InvalidIndexError):
        table.get_value(0, -1)
    with pytest.raises(IndexError, match="Table has no rows."):
        DataTable({"cols": [{"type": "string"}]}).get_value(0, 0)


def test_remove_rows_and_columns(table):
    table.remove_rows(1, 10)
    assert table.get_number_of_rows() == 1
    table.remove_column(0)
    assert table.get_column_index("population") == 0
    assert table.get_column_index("city") == -1
    assert table.to_pojo()["rows"] == [
        {"c": [{"v": 2873000}, {"v": datetime.date(1861, 3, 17)}]}
    ]


def test_sort_in_place(table):
    table.sort([{"column": "population", "desc": True}])
    assert [table.get_value(row, 0) for row in range(3)] == ["Rome", "Milan", "Turin"]
    table.sort(lambda a, b: a - b)
    assert [table.get_value(row, 0) for row in range(3)] == ["Rome", "Milan", "Turin"]


def test_clone_is_independent(table):
    copy = table.clone()
    copy.set_value(0, 0, "Florence")
    copy.set_row_property(1, "x", 1)
    assert table.get_value(0, 0) == "Rome"
    assert table.get_row_property(1, "x") is None


def test_to_json_rejects_function_columns():
    table = DataTable()
    table.add_column("function")
    table.add_row([len])
    with pytest.raises(TypeMismatchError):
        table.to_json()


def test_str_prints_the_table(table):
    assert str(table).splitlines() == [
        "City  | Population | Founded",
        "----- | ---------- | ------------",
        "Rome  | 2,873,000  | Mar 17, 1861",
        "Milan | 1.3M       |",
        "Turin | 848,000    |",
    ]
