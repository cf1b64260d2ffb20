"""
Domain models for ormlet.

Defines the building blocks record types are declared with: the ``Record``
base model, the ``Column`` field helper carrying the ``index``/``ignore``
attributes, the coarse ``DatabaseType`` classification and the ``FieldMeta``
entries the introspector produces.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

COLUMN_EXTRA_KEY = "column"


class DatabaseType(str, Enum):
    """Four-way classification every mapped Python type collapses into."""

    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"


@dataclass(frozen=True)
class FieldMeta:
    """
    Column metadata for one record field.

    ``db_type`` is None only for lenient (read-path) introspection of a field
    whose Python type has no classification.
    """

    name: str
    python_type: Any
    db_type: Optional[DatabaseType]
    ignore: bool = False
    index: bool = False


def Column(
    default: Any = None,
    *,
    index: bool = False,
    ignore: bool = False,
    **kwargs: Any,
) -> Any:
    """
    Declare a record field with column attributes.

    Parameters
    ----------
    default : Any
        Field default (fields need one so blank records can be built).
    index : bool
        Create ``idx_<table>_<field>`` for this column.
    ignore : bool
        Keep the field off the table entirely.
    **kwargs
        Passed through to ``pydantic.Field``.

    Example
    -------
        class User(Record):
            uid: Optional[int] = Column(index=True)
            cache: Optional[str] = Column(ignore=True)
    """
    extra: Dict[str, Any] = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[COLUMN_EXTRA_KEY] = {"index": index, "ignore": ignore}
    return Field(default, json_schema_extra=extra, **kwargs)


class Record(BaseModel):
    """
    Convenience base for record types.

    Declares the ``id`` primary key every mapped table carries. Subclasses add
    their own fields, each with a default.
    """

    id: Optional[int] = Field(None, description="Primary key, assigned by the database on insert.")

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=False,
    )


__all__ = ["Column", "DatabaseType", "FieldMeta", "Record"]
