"""
Placeholder handling for Postgres statements.

Postgres only understands positional `$n` placeholders. `rewrite_named_parameters`
turns `:name` tokens into them, and `parametrize` builds the `"column"=$n`
fragments used by UPDATE/DELETE statements.

Known limitation: tokens are found with a regular expression over the raw SQL
text, so a `:name` sequence inside a string literal or a comment is replaced
too when `name` is a bound parameter.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from pgdriver.sql.escaping import escape_column_name


def _is_expandable(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def rewrite_named_parameters(
    sql: str, parameters: Optional[Mapping[str, Any]]
) -> Tuple[str, List[Any]]:
    """
    Replace `:name` tokens with `$n` placeholders.

    Returns the rewritten SQL and the flat list of arguments in placeholder
    order. A list or tuple value expands into one placeholder per element,
    comma-joined, which makes `IN (:ids)` work. Every occurrence of a token gets
    its own placeholder.

    Example
    -------
        >>> rewrite_named_parameters("SELECT * FROM t WHERE x = :x AND y IN (:ys)", {"x": 5, "ys": [1, 2]})
        ('SELECT * FROM t WHERE x = $1 AND y IN ($2, $3)', [5, 1, 2])
    """
    if not parameters:
        return sql, []

    built: List[Any] = []
    pattern = re.compile(
        "|".join(f"(:{re.escape(name)}\\b)" for name in parameters)
    )

    def _replace(match: re.Match[str]) -> str:
        value = parameters[match.group(0)[1:]]
        if _is_expandable(value):
            placeholders = []
            for item in value:
                built.append(item)
                placeholders.append(f"${len(built)}")
            return ", ".join(placeholders)
        built.append(value)
        return f"${len(built)}"

    return pattern.sub(_replace, sql), built


def parametrize(values: Mapping[str, Any], start_index: int = 0) -> List[str]:
    """
    Build `"column"=$n` fragments for the keys of `values`.

    Numbering starts at `start_index + 1` and follows the mapping's key order.
    """
    return [
        f"{escape_column_name(key)}=${start_index + index + 1}"
        for index, key in enumerate(values)
    ]


def parameter_values(values: Mapping[str, Any]) -> List[Any]:
    """Values of `values` in the same order `parametrize` numbers them."""
    return list(values.values())


__all__ = ["parameter_values", "parametrize", "rewrite_named_parameters"]
