"""
Statement execution over a pooled connection source.

The Runner owns the pool opened from Settings. Each operation checks out one
connection for its duration and releases it, together with its cursor, on
every exit path. Driver and pool errors are translated into SqlExecutionError
at a single seam; nothing is retried once the pool is open.
"""

from __future__ import annotations

import threading
from contextlib import closing, contextmanager
from typing import Any, Callable, Generator, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from ormlet.config import Settings
from ormlet.dialects import Dialect, get_dialect
from ormlet.domain.codec import SKIP, from_column
from ormlet.domain.metadata import introspect
from ormlet.errors import OrmError, PoolExhaustedError, SqlExecutionError
from ormlet.infrastructure.db_factory import Pool, open_pool, probe
from ormlet.sql.template import Statement
from ormlet.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)
Y = TypeVar("Y")


def materialize(model: Type[T], columns: List[str], row: Tuple[Any, ...]) -> T:
    """
    Build a record from one result row.

    Only fields named in ``columns`` are populated, so partial projections leave
    the other fields at their defaults. Fields whose type cannot be decoded are
    skipped the same way.
    """
    cells = dict(zip(columns, row))
    values = {}
    for name, meta in introspect(model, strict=False).items():
        if name not in cells:
            continue
        value = from_column(cells[name], meta.python_type)
        if value is not SKIP:
            values[name] = value
    return model.model_construct(**values)


class Runner:
    """
    Pooled statement executor.

    Parameters
    ----------
    settings : Settings
        Resolved configuration; the driver decides the dialect and pool type.
    dialect : Dialect | None
        Override the dialect resolved from the settings.
    pool : Pool | None
        Use an already opened pool instead of opening one (the runner still
        owns it and closes it).
    """

    def __init__(
        self,
        settings: Settings,
        dialect: Optional[Dialect] = None,
        pool: Optional[Pool] = None,
    ) -> None:
        self.settings = settings
        self.dialect = dialect or get_dialect(settings.resolved_driver())
        self._lock = threading.Lock()
        self._closed = False
        self._pool: Optional[Pool] = pool
        try:
            with self._translate_errors():
                if self._pool is None:
                    self._pool = open_pool(settings, self.dialect.driver)
                probe(self._pool, self.dialect, settings.connect_attempts)
        except OrmError:
            if self._pool is not None:
                self._pool.close()
            raise

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def _translate_errors(self, statement: Optional[Statement] = None) -> Generator[None, None, None]:
        try:
            yield
        except OrmError:
            raise
        except self.dialect.pool_timeout_errors as exc:
            raise PoolExhaustedError(
                f"No connection available within {self.settings.pool_timeout}s: {exc}",
                statement.render() if statement else None,
            ) from exc
        except self.dialect.driver_errors as exc:
            raise SqlExecutionError(
                f"{type(exc).__name__}: {exc}",
                statement.render() if statement else None,
            ) from exc

    @contextmanager
    def _cursor(self, statement: Optional[Statement] = None) -> Generator[Tuple[Any, Any], None, None]:
        """Check out a connection and a cursor; both are released on every exit path."""
        if self._closed or self._pool is None:
            raise SqlExecutionError("Runner is closed", statement.render() if statement else None)
        with self._translate_errors(statement):
            with self._pool.connection() as conn:
                with closing(conn.cursor()) as cur:
                    yield conn, cur

    def _execute(self, cur: Any, statement: Statement) -> None:
        sql, params = self.dialect.prepare(statement.sql, statement.params)
        log.debug("Executing statement", extra={"sql": statement.render()})
        cur.execute(sql, params)

    def execute_update(self, statement: Statement) -> int:
        """Run DDL or DML; returns the affected row count (-1 when the driver has none)."""
        with self._cursor(statement) as (_, cur):
            self._execute(cur, statement)
            return cur.rowcount

    def insert(self, statement: Statement) -> int:
        """
        Run an INSERT and return the generated primary key.

        Returns
        -------
        int
            The new row's id, or -1 when no row was inserted or no key is available.
        """
        with self._cursor(statement) as (conn, cur):
            self._execute(cur, statement)
            if cur.rowcount == 0:
                return -1
            return self.dialect.generated_id(conn, cur)

    def execute_query(self, statement: Statement, handler: Callable[[Any], Y]) -> Y:
        """Run a query and hand the open cursor to ``handler``; its result is returned."""
        with self._cursor(statement) as (_, cur):
            self._execute(cur, statement)
            return handler(cur)

    def query(self, statement: Statement, model: Type[T]) -> List[T]:
        """Run a SELECT and materialize every row into ``model`` instances."""

        def _collect(cur: Any) -> List[T]:
            columns = [description[0] for description in cur.description or ()]
            records: List[T] = []
            for row in cur.fetchall():
                try:
                    records.append(materialize(model, columns, row))
                except (TypeError, ValueError, OverflowError) as exc:
                    log.warning(
                        "Skipping row that failed to materialize",
                        extra={"model": model.__name__, "error": str(exc)},
                    )
            return records

        return self.execute_query(statement, _collect)

    def scalar(self, statement: Statement) -> Any:
        """First column of the first row, or None for an empty result."""

        def _first(cur: Any) -> Any:
            row = cur.fetchone()
            return row[0] if row else None

        return self.execute_query(statement, _first)

    def inspect(self, handler: Callable[[Any], Y]) -> Y:
        """Run ``handler`` with a raw cursor for catalog reads."""
        with self._cursor() as (_, cur):
            return handler(cur)

    def close(self) -> None:
        """Release the whole pool. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pool, self._pool = self._pool, None
        if pool is not None:
            log.info("Closing connection pool", extra={"driver": self.dialect.name})
            with self._translate_errors():
                pool.close()

    def __enter__(self) -> "Runner":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["Runner", "materialize"]
