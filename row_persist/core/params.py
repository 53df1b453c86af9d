"""SQL parameter normalization.

Statements are written with ``?`` (positional) or ``:name`` (named)
placeholders and converted to the driver's format. String literals and
PostgreSQL ``::typecast`` syntax are left untouched.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache
from typing import Any

# Matches :name but not ::typecast and not inside words
# Negative lookbehind for : (handles ::), \w (handles mid-word colons)
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert ``?`` and ``:name`` parameters to the target param style.

    Args:
        sql: SQL string with ``?`` or ``:name`` parameters.
        paramstyle: Target style - 'named' (no conversion, the driver accepts
            both forms) or 'pyformat' (``%s`` / ``%(name)s``).

    Returns:
        SQL with parameters converted to the target style.
    """
    if paramstyle == "named":
        return sql
    return _convert_to_pyformat(sql)


def _pyformat_segment(segment: str) -> str:
    segment = segment.replace("%", "%%")
    segment = _PARAM_PATTERN.sub(r"%(\1)s", segment)
    return segment.replace("?", "%s")


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert params to %s / %(name)s, preserving string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_pyformat_segment(sql[last_end:start]))
        # Literals still pass through the driver's formatter
        parts.append(match.group().replace("%", "%%"))
        last_end = end

    if last_end < len(sql):
        parts.append(_pyformat_segment(sql[last_end:]))

    return "".join(parts)


def coerce_params(
    params: dict[str, Any] | Sequence[Any] | Any,
) -> dict[str, Any] | tuple[Any, ...] | None:
    """Normalize *params* to a dict, tuple, or None.

    * ``None`` / ``dict`` -> returned as-is (named parameter binding).
    * ``tuple`` / ``list`` -> converted to ``tuple`` (positional binding).
    * Any other scalar -> wrapped in a single-element tuple.
    """
    if params is None or isinstance(params, dict):
        return params
    if isinstance(params, (tuple, list)):
        return tuple(params)
    return (params,)
