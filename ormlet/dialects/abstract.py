"""
Dialect capability interface.

Every SQL syntax difference between database engines lives behind one Dialect
object: identifier quoting, column type names, the primary-key clause, index
DDL, paging, generated-key retrieval, catalog reads and the driver's
paramstyle. The SQL generator, the schema reconciler and the runner receive the
dialect instead of branching on the driver themselves, so a new engine is one
subclass.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional, Sequence, Set, Tuple

from ormlet.config import Driver
from ormlet.domain.models import DatabaseType

IndexSnapshot = Tuple[Dict[str, str], Set[str]]
"""``({index name: column}, {implicit index names})`` as read from the catalog."""


class Dialect(abc.ABC):
    """
    Base class for dialects.

    Subclasses set ``driver``, ``driver_errors``, ``transient_errors`` and
    ``pool_timeout_errors`` and implement the abstract hooks.
    """

    driver: Driver
    driver_errors: Tuple[type, ...] = ()
    transient_errors: Tuple[type, ...] = ()
    pool_timeout_errors: Tuple[type, ...] = ()

    @property
    def name(self) -> str:
        return self.driver.value

    def quote(self, identifier: str) -> str:
        return identifier

    @abc.abstractmethod
    def column_type(self, db_type: DatabaseType) -> str:
        """DDL type name for a database type."""
        raise NotImplementedError

    @abc.abstractmethod
    def primary_key_clause(self) -> str:
        """Column definition of the auto-incrementing ``id`` key."""
        raise NotImplementedError

    def create_index(self, table: str, index: str, column: str) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {self.quote(index)} "
            f"ON {self.quote(table)} ({self.quote(column)})"
        )

    @abc.abstractmethod
    def drop_index(self, table: str, index: str) -> str:
        raise NotImplementedError

    def limit_clause(self, limit: Optional[int], offset: Optional[int]) -> str:
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)

    def returning_clause(self) -> str:
        """Suffix appended to INSERT statements; empty when ids come from a follow-up query."""
        return ""

    @abc.abstractmethod
    def generated_id(self, connection: Any, cursor: Any) -> int:
        """Primary key of the row the cursor just inserted, or -1."""
        raise NotImplementedError

    @abc.abstractmethod
    def read_columns(self, cursor: Any, table: str) -> Dict[str, str]:
        """Live ``{column: type}`` for a table, types lower-cased."""
        raise NotImplementedError

    @abc.abstractmethod
    def read_indexes(self, cursor: Any, table: str) -> IndexSnapshot:
        """Live indexes of a table plus the names of the implicit ones."""
        raise NotImplementedError

    def prepare(self, sql: str, params: Sequence[Any]) -> Tuple[str, Tuple[Any, ...]]:
        """Convert generic ``?`` placeholders to the driver's paramstyle."""
        return sql, tuple(params)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["Dialect", "IndexSnapshot"]
