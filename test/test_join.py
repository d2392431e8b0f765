import pytest

from chartdata.data import DataTable, join
from chartdata.errors import InvalidIndexError, InvalidSpecificationError, ShapeError


@pytest.fixture
def left():
    table = DataTable()
    table.add_column({"id": "key", "label": "Key", "type": "string", "p": {"side": "left"}})
    table.add_column("number", "Value", "value")
    table.add_rows([["b", 3], ["a", 1], ["a", {"v": 2, "f": "two", "p": {"x": 1}}]])
    return table


@pytest.fixture
def right():
    table = DataTable()
    table.add_column("string", "Code", "code")
    table.add_column("number", "Other", "other")
    table.add_rows([["c", 20], ["a", 10]])
    return table


def _rows(data):
    return [
        tuple(data.get_value(row, col) for col in range(data.get_number_of_columns()))
        for row in range(data.get_number_of_rows())
    ]


@pytest.mark.parametrize(
    "how, expected",
    [
        ("inner", [("a", 1, 10), ("a", 2, 10)]),
        ("left", [("a", 1, 10), ("a", 2, 10), ("b", 3, None)]),
        ("right", [("a", 1, 10), ("a", 2, 10), ("c", None, 20)]),
        ("full", [("a", 1, 10), ("a", 2, 10), ("b", 3, None), ("c", None, 20)]),
    ],
)
def test_join_methods(left, right, how, expected):
    result = join(left, right, how, [("key", "code")], ["value"], ["other"])
    assert _rows(result) == expected


def test_join_columns_describe_the_sources(left, right):
    result = join(left, right, "inner", [(0, 0)], [1], [1])
    assert [result.get_column_id(c) for c in range(3)] == ["key", "value", "other"]
    assert result.get_column_property(0, "side") == "left"
    result.set_column_property(0, "side", "result")
    assert left.get_column_property(0, "side") == "left"


def test_join_copies_cells(left, right):
    result = join(left, right, "inner", [(0, 0)], [1], [1])
    assert result.get_formatted_value(1, 1) == "two"
    assert result.get_property(1, 1, "x") == 1
    result.set_property(1, 1, "x", 2)
    assert left.get_property(2, 1, "x") == 1


def test_full_join_keeps_only_key_values(left, right):
    left.set_formatted_value(1, 0, "A")
    inner = join(left, right, "inner", [(0, 0)])
    full = join(left, right, "full", [(0, 0)])
    assert inner.get_formatted_value(0, 0) == "A"
    assert full.get_formatted_value(0, 0) == "a"


def test_join_without_columns(left, right):
    result = join(left, right, "left", [(0, 0)])
    assert _rows(result) == [("a",), ("a",), ("b",)]


def test_join_on_multiple_keys():
    left = DataTable({"cols": [{"type": "string"}, {"type": "number"}, {"type": "string"}],
                      "rows": [{"c": ["a", 1, "x"]}, {"c": ["a", 2, "y"]}]})
    right = DataTable({"cols": [{"type": "string"}, {"type": "number"}, {"type": "boolean"}],
                       "rows": [{"c": ["a", 2, True]}, {"c": ["b", 1, False]}]})
    result = join(left, right, "inner", [(0, 0), (1, 1)], [2], [2])
    assert _rows(result) == [("a", 2, "y", True)]


def test_join_errors(left, right):
    with pytest.raises(InvalidSpecificationError):
        join(left, right, "outer", [(0, 0)])
    with pytest.raises(InvalidSpecificationError):
        join(left, right, "inner", [])
    with pytest.raises(ShapeError):
        join(left, right, "inner", [(0, 1)])
    with pytest.raises(InvalidIndexError):
        join(left, right, "inner", [("key", "missing")])
