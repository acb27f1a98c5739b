from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, Mapping

import mysql.connector

from ..common.logging import get_logger
from .connection import DBConfig

logger = get_logger(__name__)

_DATABASE_LINES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")


def split_schema(sql: str) -> Iterator[str]:
    """Yield statements of a schema file.

    The schema holds DDL only: statements end with ';' at the end of a line and
    never contain ';' inside literals. CREATE DATABASE / USE lines are dropped
    so the file applies to whichever database DB_CONFIG names.
    """

    statement: list[str] = []
    for line in _DATABASE_LINES.sub("", sql).splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        statement.append(line)
        if stripped.endswith(";"):
            yield "\n".join(statement).rstrip().rstrip(";")
            statement = []
    if statement:
        yield "\n".join(statement)


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = mysql.connector.connect(**target.connect_kwargs(with_database=False))
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    target = DBConfig.from_mapping(db_config)
    statements = list(split_schema(Path(schema_path).read_text(encoding="utf-8")))

    conn = mysql.connector.connect(**target.connect_kwargs())
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %d schema statement(s) to %s", len(statements), target.dsn())


def list_tables(db_config: Mapping) -> list[str]:
    conn = mysql.connector.connect(**DBConfig.from_mapping(db_config).connect_kwargs())
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
