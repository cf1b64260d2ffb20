"""
Dialects package for ormlet.

Re-exports the Dialect interface and the two reference dialects, plus the
driver -> dialect registry the runner resolves through.
"""

from typing import Callable, Dict, List

from ormlet.config import Driver
from ormlet.dialects.abstract import Dialect, IndexSnapshot
from ormlet.dialects.postgres import PostgresDialect
from ormlet.dialects.sqlite import SqliteDialect
from ormlet.errors import ConfigurationError


def _dialect_factories() -> Dict[Driver, Callable[[], Dialect]]:
    """Registry of available dialects."""
    return {
        Driver.SQLITE: SqliteDialect,
        Driver.POSTGRESQL: PostgresDialect,
    }


def available_dialects() -> List[str]:
    """List available dialect names."""
    return sorted(driver.value for driver in _dialect_factories())


def get_dialect(driver: Driver) -> Dialect:
    factories = _dialect_factories()
    if driver not in factories:
        raise ConfigurationError(
            f"Unknown driver '{driver}'. Available: {', '.join(available_dialects())}"
        )
    return factories[driver]()


__all__ = [
    "Dialect",
    "IndexSnapshot",
    "PostgresDialect",
    "SqliteDialect",
    "available_dialects",
    "get_dialect",
]
