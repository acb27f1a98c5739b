from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection

Row = Dict[str, Any]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One connection, one transaction: commit on success, rollback on any error."""

    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def execute_update(conn_factory: DatabaseConnection, sql: str, params: Sequence[Any]) -> int:
    """Run a single (usually conditional) UPDATE and return the number of rows it changed."""

    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        cur.execute(sql, tuple(params))
        return int(cur.rowcount)


def fetchone(cur) -> Optional[Row]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Row]:
    return list(cur.fetchall() or [])


def as_float(value: Any) -> Optional[float]:
    # DECIMAL columns come back as Decimal (C extension) or str (pure Python).
    return None if value is None else float(value)
