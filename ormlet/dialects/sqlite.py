"""
Embedded file engine dialect (SQLite through the stdlib ``sqlite3`` driver).

Identifiers are emitted unquoted and column types use the four classification
names directly. Generated ids come from a ``last_insert_rowid()`` follow-up on
the same connection.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from typing import Any, Dict, Optional, Set

from sqlalchemy.exc import TimeoutError as QueueTimeout

from ormlet.config import Driver
from ormlet.dialects.abstract import Dialect, IndexSnapshot
from ormlet.domain.models import DatabaseType

# PRAGMA index_list origin for indexes made by CREATE INDEX; 'pk' and 'u' are implicit.
_USER_INDEX_ORIGIN = "c"


def _pragma_name(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class SqliteDialect(Dialect):
    driver = Driver.SQLITE
    driver_errors = (sqlite3.Error,)
    transient_errors = (sqlite3.OperationalError,)
    pool_timeout_errors = (QueueTimeout,)

    def column_type(self, db_type: DatabaseType) -> str:
        return db_type.value

    def primary_key_clause(self) -> str:
        return "id integer primary key autoincrement"

    def drop_index(self, table: str, index: str) -> str:
        # SQLite index names are database-wide; no table qualifier.
        return f"DROP INDEX IF EXISTS {index}"

    def limit_clause(self, limit: Optional[int], offset: Optional[int]) -> str:
        if limit is None and offset is not None:
            limit = -1
        return super().limit_clause(limit, offset)

    def generated_id(self, connection: Any, cursor: Any) -> int:
        with closing(connection.cursor()) as follow_up:
            follow_up.execute("select last_insert_rowid()")
            row = follow_up.fetchone()
        return int(row[0]) if row and row[0] is not None else -1

    def read_columns(self, cursor: Any, table: str) -> Dict[str, str]:
        cursor.execute(f"PRAGMA table_info({_pragma_name(table)})")
        # (cid, name, type, notnull, dflt_value, pk)
        return {row[1]: (row[2] or "").lower() for row in cursor.fetchall()}

    def read_indexes(self, cursor: Any, table: str) -> IndexSnapshot:
        cursor.execute(f"PRAGMA index_list({_pragma_name(table)})")
        # (seq, name, unique, origin, partial)
        listed = cursor.fetchall()
        indexes: Dict[str, str] = {}
        implicit: Set[str] = set()
        for row in listed:
            index = row[1]
            origin = row[3] if len(row) > 3 else _USER_INDEX_ORIGIN
            if origin != _USER_INDEX_ORIGIN:
                implicit.add(index)
            cursor.execute(f"PRAGMA index_info({_pragma_name(index)})")
            # (seqno, cid, name)
            info = cursor.fetchall()
            indexes[index] = info[0][2] if info else ""
        return indexes, implicit


__all__ = ["SqliteDialect"]
