"""
SQL generation for record types.

SQLTemplate turns a record type (or instance), an optional Options and the
injected dialect into a Statement: SQL text with generic ``?`` placeholders and
the ordered parameters that bind them. Nothing here touches a connection.

Statement.render() substitutes literal values back into the placeholders. The
rendered text is what gets logged and what error messages carry; the driver
always receives the bound form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from ormlet.dialects.abstract import Dialect
from ormlet.domain.codec import storage_value, to_literal, to_param
from ormlet.domain.metadata import PRIMARY_KEY, introspect, record_values, table_name
from ormlet.domain.models import DatabaseType
from ormlet.sql.options import Options

PLACEHOLDER = "?"


@dataclass(frozen=True)
class Statement:
    sql: str
    params: Tuple[Any, ...] = ()

    def render(self) -> str:
        """SQL with every placeholder replaced by the literal form of its parameter."""
        pieces = self.sql.split(PLACEHOLDER)
        rendered = [pieces[0]]
        for position, piece in enumerate(pieces[1:]):
            if position < len(self.params):
                rendered.append(to_literal(self.params[position]))
            else:
                rendered.append(PLACEHOLDER)
            rendered.append(piece)
        return "".join(rendered)

    def __str__(self) -> str:
        return self.render()


def _is_sequence_arg(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def bind_predicate(predicate: str, args: Sequence[Any]) -> Tuple[str, List[Any]]:
    """
    Pair each ``?`` in a predicate with its argument.

    A sequence argument expands its placeholder into one per element
    (an empty sequence becomes NULL). Arguments beyond the last placeholder are
    kept so the driver reports the mismatch.
    """
    pieces = predicate.split(PLACEHOLDER)
    sql = [pieces[0]]
    params: List[Any] = []
    remaining = list(args)
    for piece in pieces[1:]:
        if not remaining:
            sql.append(PLACEHOLDER)
        else:
            arg = remaining.pop(0)
            if _is_sequence_arg(arg):
                items = sorted(arg) if isinstance(arg, (set, frozenset)) else list(arg)
                sql.append(", ".join(PLACEHOLDER for _ in items) if items else "NULL")
                params.extend(to_param(item) for item in items)
            else:
                sql.append(PLACEHOLDER)
                params.append(to_param(arg))
        sql.append(piece)
    params.extend(to_param(arg) for arg in remaining)
    return "".join(sql), params


class SQLTemplate:
    """Dialect-aware statement builders."""

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    def _q(self, identifier: str) -> str:
        return self.dialect.quote(identifier)

    def _where(self, options: Optional[Options]) -> Tuple[str, List[Any]]:
        if options is None or options.predicate is None:
            return "", []
        predicate, params = bind_predicate(options.predicate, options.args)
        return f" WHERE {predicate}", params

    # DDL

    def create(self, model: Type[BaseModel]) -> Statement:
        columns = [self.dialect.primary_key_clause()]
        for name, meta in introspect(model).items():
            if name == PRIMARY_KEY:
                continue
            columns.append(f"{self._q(name)} {self.dialect.column_type(meta.db_type)}")
        return Statement(
            f"CREATE TABLE IF NOT EXISTS {self._q(table_name(model))} ({', '.join(columns)})"
        )

    def add_column(self, model: Type[BaseModel], column: str, db_type: DatabaseType) -> Statement:
        return Statement(
            f"ALTER TABLE {self._q(table_name(model))} "
            f"ADD COLUMN {self._q(column)} {self.dialect.column_type(db_type)}"
        )

    def create_index(self, model: Type[BaseModel], index: str, column: str) -> Statement:
        return Statement(self.dialect.create_index(table_name(model), index, column))

    def drop_index(self, table: str, index: str) -> Statement:
        return Statement(self.dialect.drop_index(table, index))

    def drop(self, model: Type[BaseModel]) -> Statement:
        return Statement(f"DROP TABLE IF EXISTS {self._q(table_name(model))}")

    # DML

    def insert(self, record: BaseModel) -> Statement:
        """INSERT of every non-None field except ``id``."""
        model = type(record)
        table = self._q(table_name(model))
        meta = introspect(model)
        names, params = [], []
        for name, value in record_values(record).items():
            if name == PRIMARY_KEY or value is None:
                continue
            names.append(self._q(name))
            params.append(storage_value(value, meta[name].db_type))
        returning = self.dialect.returning_clause()
        if not names:
            return Statement(f"INSERT INTO {table} DEFAULT VALUES{returning}")
        placeholders = ", ".join(PLACEHOLDER for _ in names)
        return Statement(
            f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders}){returning}",
            tuple(params),
        )

    def update(self, record: BaseModel, options: Optional[Options] = None) -> Optional[Statement]:
        """
        UPDATE setting every non-None field except ``id``.

        Returns None when the record has nothing to set.
        """
        model = type(record)
        meta = introspect(model)
        assignments, params = [], []
        for name, value in record_values(record).items():
            if name == PRIMARY_KEY or value is None:
                continue
            assignments.append(f"{self._q(name)} = {PLACEHOLDER}")
            params.append(storage_value(value, meta[name].db_type))
        if not assignments:
            return None
        where, where_params = self._where(options)
        return Statement(
            f"UPDATE {self._q(table_name(model))} SET {', '.join(assignments)}{where}",
            tuple(params + where_params),
        )

    def delete(self, model: Type[BaseModel], options: Optional[Options] = None) -> Statement:
        """DELETE; without a predicate every row goes."""
        where, params = self._where(options)
        return Statement(f"DELETE FROM {self._q(table_name(model))}{where}", tuple(params))

    def query(self, model: Type[BaseModel], options: Optional[Options] = None) -> Statement:
        options = options or Options()
        where, params = self._where(options)
        sql = f"SELECT {options.selection} FROM {self._q(table_name(model))}{where}"
        if options.order_column is not None:
            sql += f" ORDER BY {options.order_column} {options.order_direction}"
        paging = self.dialect.limit_clause(options.limit_value, options.offset_value)
        if paging:
            sql += f" {paging}"
        return Statement(sql, tuple(params))


__all__ = ["PLACEHOLDER", "SQLTemplate", "Statement", "bind_predicate"]
