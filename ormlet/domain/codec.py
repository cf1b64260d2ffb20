"""
Value coercion between Python field values and SQL.

The write path has two forms: ``to_param`` produces the value handed to the
driver as a bound parameter, ``to_literal`` produces the literal text used when
a statement is rendered for logs and diagnostics. The read path,
``from_column``, turns a result cell back into the field's Python type.
"""
from __future__ import annotations

from typing import Any, Callable, Dict

from ormlet.domain.models import DatabaseType

SKIP = object()
"""Returned by ``from_column`` for types it cannot decode; the field keeps its default."""


def to_param(value: Any) -> Any:
    """Bound-parameter form: booleans become 1/0, everything else passes through."""
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def to_literal(value: Any) -> str:
    """
    SQL literal form of a value.

    Text is wrapped in single quotes without escaping embedded quotes, so the
    result is only safe for display; statements themselves are always bound.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        return f"'{value}'"
    return str(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return int.from_bytes(bytes(value), "big") != 0
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "t")
    return bool(int(value))


_DECODERS: Dict[type, Callable[[Any], Any]] = {
    int: int,
    float: float,
    str: str,
    bool: _to_bool,
}


def from_column(value: Any, python_type: Any) -> Any:
    """
    Decode a result cell into ``python_type``.

    NULL stays None. Types without a decoder return SKIP instead of raising, so
    columns of unknown type are left at the field default.
    """
    decoder = _DECODERS.get(python_type) if isinstance(python_type, type) else None
    if decoder is None:
        return SKIP
    if value is None:
        return None
    return decoder(value)


def storage_value(value: Any, db_type: DatabaseType) -> Any:
    """Parameter for a field value given its column type."""
    if value is not None and db_type is DatabaseType.BLOB:
        return 1 if value else 0
    return to_param(value)


__all__ = ["SKIP", "from_column", "storage_value", "to_literal", "to_param"]
