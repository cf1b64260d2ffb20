"""
Connection pool factories for ormlet.

Builds the pooled connection source for each driver from Settings:

- PostgreSQL: ``psycopg_pool.ConnectionPool`` with autocommit connections.
- SQLite: ``sqlalchemy.pool.QueuePool`` over stdlib ``sqlite3`` connections,
  wrapped so it exposes the same ``connection()`` / ``close()`` surface.

Pools are owned by whoever opens them (the Runner) and released by an explicit
``close()``; there is no process-wide singleton and no exit hook.

Includes a connect-time probe with retry logic for transient connection
failures using tenacity.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import closing, contextmanager
from typing import Any, Callable, Dict, Generator, Protocol, Tuple

import psycopg
from psycopg import conninfo
from psycopg_pool import ConnectionPool
from sqlalchemy.pool import QueuePool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ormlet.config import Driver, Settings
from ormlet.dialects.abstract import Dialect
from ormlet.errors import ConfigurationError, SqlExecutionError
from ormlet.utils.logging import get_logger

log = get_logger(__name__)


class Pool(Protocol):
    """What the runner needs from a pool: scoped checkout and release of everything."""

    def connection(self) -> Any:
        ...

    def close(self) -> None:
        ...


def sqlite_target(url: str) -> Tuple[str, bool]:
    """
    Resolve a SQLite URL to ``(database, uri)`` arguments for ``sqlite3.connect``.

    Accepts ``sqlite:///relative.db``, ``sqlite:////abs/path.db``,
    ``sqlite:path.db``, bare paths, ``file:`` URIs and ``:memory:``. An
    in-memory database becomes a uniquely named shared-cache URI so every
    pooled connection sees the same data.
    """
    url = (url or "").strip()
    if url.startswith("sqlite:///"):
        path = url[len("sqlite:///"):]
    elif url.startswith("sqlite://"):
        rest = url[len("sqlite://"):]
        if rest not in ("", ":memory:"):
            raise ConfigurationError(f"SQLite URL '{url}' must not name a host.")
        path = ":memory:"
    elif url.startswith("sqlite:"):
        path = url[len("sqlite:"):]
    else:
        path = url
    if not path:
        raise ConfigurationError(f"SQLite URL '{url}' names no database file.")
    if path == ":memory:":
        return f"file:ormlet-{uuid.uuid4().hex}?mode=memory&cache=shared", True
    return path, path.startswith("file:")


class SqlitePool:
    """
    QueuePool-backed pool of autocommit ``sqlite3`` connections.

    ``max_idle`` connections are kept, up to ``max_size`` in total; checkout
    blocks for ``pool_timeout`` seconds when all are in use.
    """

    def __init__(self, settings: Settings) -> None:
        self.database, self.uri = sqlite_target(settings.url)
        self.busy_timeout = settings.pool_timeout
        pool_size = max(settings.max_idle, 1)
        self._pool = QueuePool(
            self._connect,
            pool_size=pool_size,
            max_overflow=max(settings.max_size - pool_size, 0),
            timeout=settings.pool_timeout,
        )
        warm = [self._pool.connect() for _ in range(min(settings.init_size, pool_size))]
        for conn in warm:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(
            self.database,
            uri=self.uri,
            timeout=self.busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )

    @contextmanager
    def connection(self) -> Generator[Any, None, None]:
        """
        Context manager for a pooled connection, returned on every exit path.

        Example
        -------
            with pool.connection() as conn:
                with closing(conn.cursor()) as cur:
                    cur.execute("SELECT 1")
        """
        conn = self._pool.connect()
        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        self._pool.dispose()


def _sqlite_pool(settings: Settings) -> Pool:
    return SqlitePool(settings)


def _postgres_pool(settings: Settings) -> Pool:
    try:
        conninfo.conninfo_to_dict(settings.url)
    except psycopg.ProgrammingError as exc:
        raise ConfigurationError(f"Invalid PostgreSQL URL: {exc}") from exc

    kwargs: Dict[str, Any] = {"autocommit": True}
    if settings.username:
        kwargs["user"] = settings.username
    if settings.password:
        kwargs["password"] = settings.password
    return ConnectionPool(
        conninfo=settings.url,
        min_size=max(min(settings.init_size, settings.max_size), 1),
        max_size=settings.max_size,
        timeout=settings.pool_timeout,
        kwargs=kwargs,
        name="ormlet",
        open=True,
    )


def _pool_factories() -> Dict[Driver, Callable[[Settings], Pool]]:
    """Registry of pool builders per driver."""
    return {
        Driver.SQLITE: _sqlite_pool,
        Driver.POSTGRESQL: _postgres_pool,
    }


def open_pool(settings: Settings, driver: Driver) -> Pool:
    """
    Open the pooled connection source for a driver.

    Raises
    ------
    ConfigurationError
        If the driver has no pool builder or the URL is malformed.
    """
    factories = _pool_factories()
    if driver not in factories:
        raise ConfigurationError(f"No connection pool available for driver '{driver}'.")
    log.info(
        "Opening connection pool",
        extra={"driver": driver.value, "url": settings.masked_url(), "max_size": settings.max_size},
    )
    return factories[driver](settings)


def probe(pool: Pool, dialect: Dialect, attempts: int) -> None:
    """
    Round-trip ``SELECT 1`` through the pool, retrying transient driver errors.

    Retries up to ``attempts`` times with exponential backoff; the last error is
    re-raised unchanged, except a pool timeout.

    Raises
    ------
    SqlExecutionError
        If the database could not be reached before the pool timeout.
    """

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(dialect.transient_errors),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )
    def _select_one() -> None:
        with pool.connection() as conn:
            with closing(conn.cursor()) as cur:
                cur.execute("SELECT 1")
                cur.fetchone()

    try:
        _select_one()
    except dialect.pool_timeout_errors as exc:
        raise SqlExecutionError(
            f"Could not connect to the {dialect.name} database after {attempts} attempt(s): {exc}"
        ) from exc


__all__ = ["Pool", "SqlitePool", "open_pool", "probe", "sqlite_target"]
