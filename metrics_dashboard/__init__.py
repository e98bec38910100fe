"""Sales and stock metrics dashboards."""

__version__ = "0.1.0"
