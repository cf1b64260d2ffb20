"""
Schema reconciliation for registered record types.

TableManager brings live tables in line with record definitions, additively:

1. CREATE TABLE IF NOT EXISTS.
2. Re-read the table's columns and indexes from the catalog into the cache.
3. ADD COLUMN for every declared field the table lacks. Existing columns are
   never dropped or retyped.
4. CREATE INDEX for declared indexes the table lacks. Once every record type in
   the batch is done, indexes no declared field asks for are dropped, except
   the implicit primary-key indexes.

Every step is idempotent or additive, so registering the same types on every
process start converges after one pass. A failing statement aborts the batch
and surfaces to the caller; re-running is safe.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Dict, Generator, Iterable, List, Set, Tuple, Type

from pydantic import BaseModel

from ormlet.domain.metadata import index_specs, introspect, table_name
from ormlet.infrastructure.runner import Runner
from ormlet.sql.template import SQLTemplate
from ormlet.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class TableSnapshot:
    """Live state of one table as last read from the catalog."""

    columns: Dict[str, str] = field(default_factory=dict)
    indexes: Dict[str, str] = field(default_factory=dict)
    implicit_indexes: Set[str] = field(default_factory=set)


class SchemaCache:
    """
    Lock-guarded table -> snapshot registry.

    Snapshots are replaced wholesale on refresh and handed out as copies. Each
    table also gets a reconciliation lock so only one migration per table runs
    at a time.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshots: Dict[str, TableSnapshot] = {}
        self._table_locks: Dict[str, threading.Lock] = {}

    def replace(self, table: str, snapshot: TableSnapshot) -> None:
        with self._lock:
            self._snapshots[table] = snapshot

    def get(self, table: str) -> TableSnapshot:
        with self._lock:
            current = self._snapshots.get(table, TableSnapshot())
            return TableSnapshot(
                columns=dict(current.columns),
                indexes=dict(current.indexes),
                implicit_indexes=set(current.implicit_indexes),
            )

    def evict(self, table: str) -> None:
        with self._lock:
            self._snapshots.pop(table, None)

    def tables(self) -> List[str]:
        with self._lock:
            return sorted(self._snapshots)

    def _table_lock(self, table: str) -> threading.Lock:
        with self._lock:
            return self._table_locks.setdefault(table, threading.Lock())

    @contextmanager
    def reconciling(self, tables: Iterable[str]) -> Generator[None, None, None]:
        """Hold the reconciliation locks of ``tables``, taken in sorted order."""
        with ExitStack() as stack:
            for table in sorted(set(tables)):
                stack.enter_context(self._table_lock(table))
            yield


class TableManager:
    """
    Registers record types and reconciles their tables.

    Parameters
    ----------
    runner : Runner
        Executes the DDL and the catalog reads.
    template : SQLTemplate | None
        Statement builder; defaults to one bound to the runner's dialect.
    cache : SchemaCache | None
        Snapshot registry; a private one is created when omitted.
    """

    def __init__(
        self,
        runner: Runner,
        template: SQLTemplate | None = None,
        cache: SchemaCache | None = None,
    ) -> None:
        self.runner = runner
        self.template = template or SQLTemplate(runner.dialect)
        self.cache = cache or SchemaCache()

    def register(self, *models: Type[BaseModel]) -> None:
        """Create, migrate and index every record type in the batch."""
        for model in models:
            introspect(model)  # unsupported field types fail before any DDL runs
        tables = [table_name(model) for model in models]
        with self.cache.reconciling(tables):
            stale: Dict[str, Tuple[str, str]] = {}
            for model in models:
                self._create_table(model)
                self.refresh(model)
                self._add_columns(model)
                stale.update(self._add_indexes(model))
            declared = {index for model in models for index, _ in index_specs(model)}
            self._drop_indexes({index: spec for index, spec in stale.items() if index not in declared})

    def drop(self, *models: Type[BaseModel]) -> None:
        """Drop the tables of ``models`` and forget their snapshots."""
        tables = [table_name(model) for model in models]
        with self.cache.reconciling(tables):
            for model in models:
                self.runner.execute_update(self.template.drop(model))
                self.cache.evict(table_name(model))
                log.info("Dropped table", extra={"table": table_name(model)})

    def refresh(self, model: Type[BaseModel]) -> TableSnapshot:
        """Re-read the table's columns and indexes, replacing the cached snapshot."""
        table = table_name(model)
        dialect = self.runner.dialect

        def _read(cur) -> TableSnapshot:
            columns = dialect.read_columns(cur, table)
            indexes, implicit = dialect.read_indexes(cur, table)
            return TableSnapshot(columns=columns, indexes=indexes, implicit_indexes=implicit)

        snapshot = self.runner.inspect(_read)
        self.cache.replace(table, snapshot)
        return snapshot

    def _create_table(self, model: Type[BaseModel]) -> None:
        self.runner.execute_update(self.template.create(model))

    def _add_columns(self, model: Type[BaseModel]) -> None:
        table = table_name(model)
        live = self.cache.get(table).columns
        for name, meta in introspect(model).items():
            if name in live:
                continue
            self.runner.execute_update(self.template.add_column(model, name, meta.db_type))
            log.info(
                "Added column",
                extra={"table": table, "column": name, "db_type": meta.db_type.value},
            )

    def _add_indexes(self, model: Type[BaseModel]) -> Dict[str, Tuple[str, str]]:
        """Create missing declared indexes; return the undeclared ones as ``{index: (table, column)}``."""
        table = table_name(model)
        snapshot = self.cache.get(table)
        undeclared = {
            index: column
            for index, column in snapshot.indexes.items()
            if index not in snapshot.implicit_indexes
        }
        for index, column in index_specs(model):
            if index in undeclared:
                undeclared.pop(index)
                continue
            if index in snapshot.indexes:
                continue
            self.runner.execute_update(self.template.create_index(model, index, column))
            log.info("Created index", extra={"table": table, "index": index, "column": column})
        return {index: (table, column) for index, column in undeclared.items()}

    def _drop_indexes(self, stale: Dict[str, Tuple[str, str]]) -> None:
        for index, (table, column) in stale.items():
            self.runner.execute_update(self.template.drop_index(table, index))
            log.info("Dropped index", extra={"table": table, "index": index, "column": column})


__all__ = ["SchemaCache", "TableManager", "TableSnapshot"]
