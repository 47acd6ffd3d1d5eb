"""
SQL text helpers: identifier escaping and placeholder handling.
"""

from pgdriver.sql.escaping import escape_alias_name, escape_column_name, escape_table_name
from pgdriver.sql.parameters import parameter_values, parametrize, rewrite_named_parameters

__all__ = [
    "escape_alias_name",
    "escape_column_name",
    "escape_table_name",
    "parameter_values",
    "parametrize",
    "rewrite_named_parameters",
]
