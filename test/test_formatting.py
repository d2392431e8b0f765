import datetime

import pytest

from chartdata.data import DataTable
from chartdata.data.formatting import format_value


@pytest.mark.parametrize(
    "value, column_type, expected",
    [
        (None, "number", ""),
        (0, "number", "0"),
        (-0.0001, "number", "0"),
        (1234, "number", "1,234"),
        (-1234.5678, "number", "-1,234.568"),
        (float("nan"), "number", "NaN"),
        (float("inf"), "number", "∞"),
        ("text", "string", "text"),
        (True, "boolean", "true"),
        (False, "boolean", "false"),
        ([0, 0], "timeofday", "00:00"),
        ([0, 0, 1], "timeofday", "00:00:01"),
        ([0, 0, 1, 100], "timeofday", "00:00:01.100"),
        ([23, 59, 0, 0], "timeofday", "23:59"),
        (datetime.date(2009, 8, 1), "date", "Aug 1, 2009"),
        (datetime.datetime(2009, 8, 1, 15, 0), "date", "Aug 1, 2009"),
        (datetime.datetime(2000, 6, 5, 17, 20, 30), "datetime", "Jun 5, 2000, 5:20:30 PM"),
        (datetime.datetime(2000, 6, 5, 0, 5, 0), "datetime", "Jun 5, 2000, 12:05:00 AM"),
        (datetime.datetime(2000, 6, 5, 12, 0, 0), "datetime", "Jun 5, 2000, 12:00:00 PM"),
    ],
)
def test_format_value(value, column_type, expected):
    assert format_value(value, column_type) == expected


def test_tables_use_default_formatting():
    table = DataTable()
    table.add_column("timeofday")
    table.add_column("datetime")
    table.add_row([[9, 30, 0], datetime.date(2020, 2, 29)])
    assert table.get_formatted_value(0, 0) == "09:30"
    assert table.get_formatted_value(0, 1) == "Feb 29, 2020, 12:00:00 AM"
