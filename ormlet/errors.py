"""
Exception hierarchy for ormlet.

Every failure the engine raises derives from OrmError so callers can catch one
type. Driver exceptions are never leaked directly; they are wrapped in
SqlExecutionError and chained with ``raise ... from``.
"""

from __future__ import annotations

from typing import Optional


class OrmError(RuntimeError):
    """Base class for all ormlet errors."""


class ConfigurationError(OrmError):
    """Unknown driver, malformed URL or invalid pool sizing."""


class UnsupportedTypeError(OrmError, TypeError):
    """A record field has a Python type with no database type classification."""

    def __init__(self, model: str, field: str, python_type: object) -> None:
        self.model = model
        self.field = field
        self.python_type = python_type
        super().__init__(
            f"Field '{model}.{field}' has unsupported type {python_type!r}; "
            "supported types are int, float, str and bool."
        )


class SqlExecutionError(OrmError):
    """
    A statement failed in the driver (syntax, constraint, connectivity).

    Attributes
    ----------
    statement : str | None
        The rendered statement that failed, when one was being executed.
    """

    def __init__(self, message: str, statement: Optional[str] = None) -> None:
        self.statement = statement
        if statement:
            message = f"{message} [statement: {statement}]"
        super().__init__(message)


class PoolExhaustedError(SqlExecutionError):
    """No pooled connection became available before the pool timeout."""


__all__ = [
    "OrmError",
    "ConfigurationError",
    "UnsupportedTypeError",
    "SqlExecutionError",
    "PoolExhaustedError",
]
