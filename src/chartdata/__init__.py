"""ChartData

In-memory typed tables for feeding data to charts.

ChartData provides the tables that charting code consumes:
columns with a type, rows of cells holding a value, its formatted
text and arbitrary properties, and the operations that charts
need on them like sorting, filtering, grouping and joining.

The library is constituted by multiple components,
each self documented in literate programming style.

The primary components are:

* The Data package, with the tables, the views and their algorithms.
* The Utils package, with helpers to inspect and print the data.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import data

__all__ = ("data",)
