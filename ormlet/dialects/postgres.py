"""
Networked engine dialect (PostgreSQL through psycopg 3).

Identifiers are double-quoted (``user`` is reserved), the key is a
``bigserial`` and inserts return the generated id with ``RETURNING``.
Placeholders are rewritten to psycopg's ``%s`` paramstyle.
"""

from __future__ import annotations

from typing import Any, Dict, Sequence, Set, Tuple

import psycopg
from psycopg_pool import PoolTimeout

from ormlet.config import Driver
from ormlet.dialects.abstract import Dialect, IndexSnapshot
from ormlet.domain.metadata import PRIMARY_KEY
from ormlet.domain.models import DatabaseType

_COLUMN_TYPES: Dict[DatabaseType, str] = {
    DatabaseType.INTEGER: "bigint",
    DatabaseType.REAL: "double precision",
    DatabaseType.TEXT: "text",
    DatabaseType.BLOB: "smallint",
}

_COLUMNS_SQL = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = current_schema() AND table_name = %s
    ORDER BY ordinal_position
"""

_INDEXES_SQL = """
    SELECT i.relname, a.attname, ix.indisprimary
    FROM pg_index ix
    JOIN pg_class t ON t.oid = ix.indrelid
    JOIN pg_class i ON i.oid = ix.indexrelid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    LEFT JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
    WHERE n.nspname = current_schema() AND t.relname = %s
"""


class PostgresDialect(Dialect):
    driver = Driver.POSTGRESQL
    driver_errors = (psycopg.Error,)
    transient_errors = (psycopg.OperationalError, psycopg.InterfaceError)
    pool_timeout_errors = (PoolTimeout,)

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def column_type(self, db_type: DatabaseType) -> str:
        return _COLUMN_TYPES[db_type]

    def primary_key_clause(self) -> str:
        return f"{self.quote(PRIMARY_KEY)} bigserial primary key"

    def drop_index(self, table: str, index: str) -> str:
        # Index names live in the table's schema, which is the current one.
        return f"DROP INDEX IF EXISTS {self.quote(index)}"

    def returning_clause(self) -> str:
        return f" RETURNING {self.quote(PRIMARY_KEY)}"

    def generated_id(self, connection: Any, cursor: Any) -> int:
        row = cursor.fetchone() if cursor.description else None
        return int(row[0]) if row and row[0] is not None else -1

    def read_columns(self, cursor: Any, table: str) -> Dict[str, str]:
        cursor.execute(_COLUMNS_SQL, (table,))
        return {name: (data_type or "").lower() for name, data_type in cursor.fetchall()}

    def read_indexes(self, cursor: Any, table: str) -> IndexSnapshot:
        cursor.execute(_INDEXES_SQL, (table,))
        indexes: Dict[str, str] = {}
        implicit: Set[str] = set()
        for index, column, is_primary in cursor.fetchall():
            indexes.setdefault(index, column or "")
            if is_primary:
                implicit.add(index)
        return indexes, implicit

    def prepare(self, sql: str, params: Sequence[Any]) -> Tuple[str, Tuple[Any, ...]]:
        # psycopg parses placeholders whenever params is not None, even when empty.
        return sql.replace("%", "%%").replace("?", "%s"), tuple(params)


__all__ = ["PostgresDialect"]
