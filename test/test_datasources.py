import datetime

import pyarrow as pa
import pytest

from chartdata.data import (
    DataTable,
    array_to_data_table,
    arrow_to_data_table,
    csv_to_data_table,
    records_to_data_table,
    values_to_data_table,
)
from chartdata.data.datasources import parse_timeofday
from chartdata.errors import InvalidSpecificationError, TypeMismatchError

MOCK_CSV = (
    "name,amount,when,at\n"
    "Alice,10,2020-01-02,10:30\n"
    "Bob,2.5,2021-03-04,08:15:05.250\n"
)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(MOCK_CSV)
    return str(path)


def _columns(data):
    return [
        (data.get_column_id(c), data.get_column_type(c))
        for c in range(data.get_number_of_columns())
    ]


def _rows(data):
    return [
        [data.get_value(row, col) for col in range(data.get_number_of_columns())]
        for row in range(data.get_number_of_rows())
    ]


def test_array_to_data_table_with_headers():
    table = array_to_data_table(
        [["Name", {"label": "Age", "id": "age", "type": "number"}], ["Alice", 30], ["Bob", None]]
    )
    assert _columns(table) == [("", "string"), ("age", "number")]
    assert table.get_column_label(0) == "Name"
    assert _rows(table) == [["Alice", 30], ["Bob", None]]


def test_array_to_data_table_without_headers():
    table = array_to_data_table([[1, "a", True], {"c": [2, "b", False], "p": {"x": 1}}], no_headers=True)
    assert [t for _, t in _columns(table)] == ["number", "string", "boolean"]
    assert table.get_number_of_rows() == 2
    assert table.get_row_property(1, "x") == 1


def test_array_to_data_table_infers_types():
    table = array_to_data_table(
        [
            ["When", "Time", "Empty", "Flag"],
            [datetime.date(2020, 1, 1), [10, 30], None, {"v": False, "f": "no"}],
            [datetime.datetime(2020, 1, 1, 10, 0), None, None, True],
        ]
    )
    assert [t for _, t in _columns(table)] == ["datetime", "timeofday", "string", "boolean"]
    assert table.get_value(0, 0) == datetime.datetime(2020, 1, 1)
    assert table.get_formatted_value(0, 3) == "no"


def test_array_to_data_table_keeps_dates_at_midnight_as_dates():
    table = array_to_data_table([["When"], [datetime.datetime(2020, 1, 1)]])
    assert table.get_column_type(0) == "date"


@pytest.mark.parametrize("rows", ["a,b", [[1, 2]], [["a"], "row"]])
def test_array_to_data_table_errors(rows):
    with pytest.raises(InvalidSpecificationError):
        array_to_data_table(rows)


def test_array_to_data_table_empty():
    table = array_to_data_table([])
    assert table.get_number_of_columns() == 0


def test_records_to_data_table():
    table = records_to_data_table([{"a": 1, "b": "x"}, {"c": True, "a": 2}])
    assert _columns(table) == [("a", "number"), ("b", "string"), ("c", "boolean")]
    assert _rows(table) == [[1, "x", None], [2, None, True]]


def test_values_to_data_table():
    table = values_to_data_table([3, None, 1])
    assert _columns(table) == [("data", "number")]
    assert _rows(table) == [[3], [None], [1]]


def test_csv_to_data_table_infers_types(csv_file):
    table = csv_to_data_table(csv_file)
    assert _columns(table)[:3] == [("name", "string"), ("amount", "number"), ("when", "date")]
    assert table.get_column_label(0) == "name"
    assert [row[:3] for row in _rows(table)] == [
        ["Alice", 10, datetime.date(2020, 1, 2)],
        ["Bob", 2.5, datetime.date(2021, 3, 4)],
    ]


def test_csv_to_data_table_with_column_types(csv_file):
    table = csv_to_data_table(csv_file, ["string", "number", "datetime", "timeofday"])
    assert [t for _, t in _columns(table)] == ["string", "number", "datetime", "timeofday"]
    assert _rows(table) == [
        ["Alice", 10, datetime.datetime(2020, 1, 2), [10, 30, 0]],
        ["Bob", 2.5, datetime.datetime(2021, 3, 4), [8, 15, 5, 250]],
    ]


def test_csv_to_data_table_without_header():
    table = csv_to_data_table(b"1,x\n2,y\n", header=False)
    assert _columns(table) == [("", "number"), ("", "string")]
    assert _rows(table) == [[1, "x"], [2, "y"]]


def test_csv_to_data_table_numbers_as_strings():
    table = csv_to_data_table(b"code\n007\n010\n", ["string"])
    assert _rows(table) == [["007"], ["010"]]


@pytest.mark.parametrize(
    "column_types, error",
    [
        (["number", "number", "date", "string"], TypeMismatchError),
        (["string", "number"], InvalidSpecificationError),
        (["string", "money", "date", "string"], TypeMismatchError),
    ],
)
def test_csv_to_data_table_errors(csv_file, column_types, error):
    with pytest.raises(error):
        csv_to_data_table(csv_file, column_types)


def test_arrow_to_data_table():
    data = pa.table(
        {
            "n": pa.array([1, None], type=pa.int32()),
            "s": ["a", None],
            "t": pa.array([datetime.time(10, 30, 5, 250000), None], type=pa.time64("us")),
            "ts": pa.array(
                [datetime.datetime(2020, 1, 1, 12, tzinfo=datetime.timezone.utc), None],
                type=pa.timestamp("ms", tz="UTC"),
            ),
        }
    )
    table = arrow_to_data_table(data)
    assert _columns(table) == [
        ("n", "number"),
        ("s", "string"),
        ("t", "timeofday"),
        ("ts", "datetime"),
    ]
    assert _rows(table) == [
        [1, "a", [10, 30, 5, 250], datetime.datetime(2020, 1, 1, 12)],
        [None, None, None, None],
    ]


def test_arrow_to_data_table_rejects_unsupported_types():
    with pytest.raises(TypeMismatchError):
        arrow_to_data_table(pa.table({"b": pa.array([b"x"], type=pa.binary())}))


def test_arrow_round_trip():
    table = DataTable()
    table.add_column("string", "Name")
    table.add_column("number", "Score", "score")
    table.add_column("boolean", "", "ok")
    table.add_column("date", "Day", "day")
    table.add_column("datetime", "At", "at")
    table.add_column("timeofday", "Time", "time")
    table.add_rows(
        [
            ["a", 1.5, True, datetime.date(2020, 1, 1), datetime.datetime(2020, 1, 1, 9), [9, 30, 0]],
            [None, None, None, None, None, None],
        ]
    )
    restored = arrow_to_data_table(table.to_arrow())
    assert restored.to_pojo() == table.to_pojo()


@pytest.mark.parametrize(
    "text, expected",
    [("10:30", [10, 30, 0]), ("8", [8, 0, 0]), ("23:59:59.9", [23, 59, 59, 900]), (None, None)],
)
def test_parse_timeofday(text, expected):
    assert parse_timeofday(text) == expected


def test_parse_timeofday_errors():
    with pytest.raises(TypeMismatchError):
        parse_timeofday("noon")
