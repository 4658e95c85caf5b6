"""Work package query service: composable filters, sorting, grouping and sums over project work packages."""

__version__ = "0.1.0"
