"""
Infrastructure package for ormlet.

Centralizes database connectivity concerns (pool factories, statement
execution). Keep this layer focused on I/O and resource management, decoupled
from SQL generation and schema logic.
"""

from ormlet.infrastructure.db_factory import Pool, SqlitePool, open_pool, probe, sqlite_target
from ormlet.infrastructure.runner import Runner, materialize

__all__ = [
    "Pool",
    "Runner",
    "SqlitePool",
    "materialize",
    "open_pool",
    "probe",
    "sqlite_target",
]
