from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core.exceptions import TransactionConflict

# InnoDB deadlock and lock-wait timeout: both mean "another writer won, retry".
MYSQL_CONFLICT_ERRNOS = frozenset({1205, 1213})


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def ensure_row_written(cur, *, table: str, key: object) -> None:
    """Turn a zero-row compare-and-swap write into a retryable conflict."""
    if cur.rowcount == 0:
        raise TransactionConflict(f"{table} row {key} was modified concurrently")
