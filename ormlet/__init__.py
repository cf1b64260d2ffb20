"""
ormlet - a small object-relational mapper with automatic additive migrations.

Declare records as pydantic models and ormlet persists them to SQLite or
PostgreSQL tables:

- Introspection of record types into ordered column metadata
- SQL generation (DDL and DML) from that metadata and a fluent Options builder
- Schema reconciliation that adds missing columns and indexes on every start
- A pooled runner that binds parameters and marshals rows back into records

Applications never write DDL; registering the record types on start-up is
enough to keep the schema current.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Public API exports
from ormlet.config import Driver, Settings, get_settings
from ormlet.db import Database, connect
from ormlet.domain.models import Column, DatabaseType, FieldMeta, Record
from ormlet.errors import (
    ConfigurationError,
    OrmError,
    PoolExhaustedError,
    SqlExecutionError,
    UnsupportedTypeError,
)
from ormlet.sql.options import Options
from ormlet.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Driver",
    "Settings",
    "get_settings",
    # Facade
    "Database",
    "connect",
    # Record declaration
    "Column",
    "DatabaseType",
    "FieldMeta",
    "Record",
    # Querying
    "Options",
    # Errors
    "ConfigurationError",
    "OrmError",
    "PoolExhaustedError",
    "SqlExecutionError",
    "UnsupportedTypeError",
    # Logging
    "configure_logging",
    "get_logger",
]
