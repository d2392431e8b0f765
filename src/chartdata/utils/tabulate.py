"""Format tabular data into a text table for print.

The `tabulate` function takes a table or a view and formats it into a text table.
Cells are shown with their formatted value, long strings are truncated,
and the number of rows to display is limited.
The function is used to implement ``str()`` of tables and views.

Example:

    >>> from chartdata.data import DataTable
    >>> table = DataTable({
    ...     "cols": [{"label": "Product", "type": "string"},
    ...              {"label": "Quantity", "type": "number"},
    ...              {"label": "Price", "type": "number"}],
    ...     "rows": [{"c": [{"v": "Videogame"}, {"v": 8}, {"v": 66.5}]},
    ...              {"c": [{"v": "Laptop"}, {"v": 8}, {"v": 38.72}]},
    ...              {"c": [{"v": "Laptop"}, {"v": 7}, {"v": 1077.46}]}],
    ... })
    >>> print(tabulate(table))
    Product   | Quantity | Price
    --------- | -------- | --------
    Videogame | 8        | 66.5
    Laptop    | 8        | 38.72
    Laptop    | 7        | 1,077.46
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..data.base import AbstractDataTable


def tabulate(data: "AbstractDataTable", max_rows: int = 20) -> str:
    """Format a table or view into a text table.

    Will produce a string like::

        Product   | Quantity | Price
        --------- | -------- | -----
        Videogame | 8        | 66.5
        Laptop    | 8        | 38.72
    """
    cols = [column_title(data, idx) for idx in range(data.get_number_of_columns())]
    number_of_rows = data.get_number_of_rows()
    rows = [
        [truncate(data.get_formatted_value(row, col)) for col in range(len(cols))]
        for row in range(min(max_rows, number_of_rows))
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    table = "\n".join(header + separator + textrows)
    if number_of_rows > max_rows:
        table += f"\n... and {number_of_rows - max_rows} more rows"
    return table


def column_title(data: "AbstractDataTable", column: int) -> str:
    """The label of the column, or its id when it has no label."""
    return data.get_column_label(column) or data.get_column_id(column) or str(column)


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes."""
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip()


def truncate(text: str, length: int = 30) -> str:
    """Truncate long strings, so that they don't break the table layout."""
    if len(text) > length:
        text = text[: length - 3] + "..."
    return text
