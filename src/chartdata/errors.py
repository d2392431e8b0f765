"""Exceptions raised by ChartData.

All the errors share :class:`DataTableError` as their base,
so that it is possible to catch any failure coming from
the data engine with a single ``except`` clause.

Each error also inherits from the builtin exception
that most closely describes it, so code that only
knows about ``IndexError`` or ``TypeError`` keeps working:

    >>> try:
    ...     raise InvalidIndexError("Invalid row index 3")
    ... except IndexError as err:
    ...     print(err)
    Invalid row index 3
"""

__all__ = (
    "DataTableError",
    "InvalidIndexError",
    "InvalidSpecificationError",
    "TypeMismatchError",
    "ShapeError",
)


class DataTableError(Exception):
    """Base class for all the errors of the data engine."""


class InvalidIndexError(DataTableError, IndexError):
    """A row or column reference does not point to existing data."""


class InvalidSpecificationError(DataTableError, ValueError):
    """A sort, filter, row or column specification is malformed."""


class TypeMismatchError(DataTableError, TypeError):
    """A value does not match the type of the column it belongs to."""


class ShapeError(DataTableError, ValueError):
    """Rows, columns or keys have incompatible shapes."""
