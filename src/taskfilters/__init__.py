"""taskfilters - Built-in and query-backed filters for hierarchical task trees.

Tasks live in a SQLite store; built-in filters are evaluated in memory
while custom filters are SQL expressions whose results are cached and
refreshed whenever the tasks change.
"""

from .cli import main

__all__ = ["main"]
