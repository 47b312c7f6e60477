from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List, Mapping, Union

from ..app_logger import get_logger
from .connection import DatabaseConnection, DBConfig

log = get_logger("database")

_DATABASE_SELECTION = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;[ \t]*$")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")


def _strip_create_db_and_use(sql: str) -> str:
    """Drop CREATE DATABASE / USE lines; the target database comes from DB_CONFIG."""
    return _DATABASE_SELECTION.sub("", sql)


def _strip_line_comments(sql: str) -> str:
    return _LINE_COMMENT.sub("", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a schema file on top-level ';' (quoted and backslash-escaped ones are kept)."""
    start = 0
    quote = None
    escaped = False

    for i, ch in enumerate(sql):
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def load_schema(schema_path: Union[str, Path]) -> List[str]:
    text = Path(schema_path).read_text(encoding="utf-8")
    return list(iter_sql_statements(_strip_line_comments(_strip_create_db_and_use(text))))


def ensure_database_exists(db_config: Mapping) -> None:
    factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping, *, schema_path: Union[str, Path]) -> int:
    """Create the database if needed and run every schema statement; returns the count."""
    ensure_database_exists(db_config)
    statements = load_schema(schema_path)

    factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    conn = factory.connect()
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()

    log.info("applied %d schema statements to %s", len(statements), factory.config.describe())
    return len(statements)


def list_tables(db_config: Mapping) -> List[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
