"""
Identifier quoting for Postgres.

Names are wrapped in double quotes as-is. Quotes inside a name are not
escaped, so only names coming from entity metadata may be passed here.
"""

from __future__ import annotations


def escape_column_name(column_name: str) -> str:
    """Escapes a column name."""
    return f'"{column_name}"'


def escape_alias_name(alias_name: str) -> str:
    """Escapes an alias."""
    return f'"{alias_name}"'


def escape_table_name(table_name: str) -> str:
    """Escapes a table name."""
    return f'"{table_name}"'


__all__ = ["escape_alias_name", "escape_column_name", "escape_table_name"]
