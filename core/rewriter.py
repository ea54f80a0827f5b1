"""
Deterministic statement rewriting that bounds result size.

cap_row_count is only ever applied to statements that already passed
classification. build_table_select assembles the bounded statement for
table data fetches from validated pieces.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_ROW_CAP = 1000
TABLE_DATA_CEILING = 1000

_FIRST_SELECT = re.compile(r"SELECT", re.IGNORECASE)
_SAFE_PROJECTION = re.compile(r"[A-Za-z0-9_,\s*]+")


@dataclass(frozen=True)
class RowCapResult:
    statement: str
    applied: bool


def has_row_limit(statement: str) -> bool:
    # Substring test: "SELECT laptop FROM ..." also reads as limited
    return "TOP " in statement.upper()


def cap_row_count(statement: str, cap: int = DEFAULT_ROW_CAP) -> RowCapResult:
    """
    Inject ``TOP <cap>`` after the first SELECT unless a limit is present.

    A caller-supplied TOP clause is trusted as-is, which makes the rewrite
    idempotent.
    """
    if isinstance(cap, bool) or not isinstance(cap, int) or cap < 1:
        raise ValueError(f"Row cap must be a positive integer, got {cap!r}")

    if has_row_limit(statement):
        return RowCapResult(statement=statement, applied=False)

    rewritten = _FIRST_SELECT.sub(f"SELECT TOP {cap}", statement, count=1)
    return RowCapResult(statement=rewritten, applied=True)


def clamp_limit(raw: Any, default: int = TABLE_DATA_CEILING, ceiling: int = TABLE_DATA_CEILING) -> int:
    """Parse a caller limit; unusable or zero values fall back to the default."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = 0
    if value == 0:
        value = default
    return min(max(1, value), ceiling)


def safe_projection(columns: Optional[Any]) -> str:
    """Caller projection if it fits the restricted character class, else '*'."""
    if not isinstance(columns, str) or columns == "*":
        return "*"
    if _SAFE_PROJECTION.fullmatch(columns) is None:
        return "*"
    return columns


def build_table_select(
    table: str,
    limit: Any = None,
    columns: Optional[Any] = None,
    ceiling: int = TABLE_DATA_CEILING,
) -> str:
    """SELECT TOP <n> <columns> FROM [<table>] for an already validated table."""
    n = clamp_limit(limit, ceiling=ceiling)
    return f"SELECT TOP {n} {safe_projection(columns)} FROM [{table}]"
