"""
Record type introspection.

Turns a pydantic model class into the ordered column metadata the SQL
generator, the schema reconciler and the row decoder all share. Fields are
collected from the most-derived class up through its ancestors, in declaration
order within each class, so two introspections of a type always agree.
"""
from __future__ import annotations

import inspect
import types
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ormlet.domain.models import COLUMN_EXTRA_KEY, DatabaseType, FieldMeta
from ormlet.errors import UnsupportedTypeError

PRIMARY_KEY = "id"

_TYPE_TABLE: Dict[type, DatabaseType] = {
    int: DatabaseType.INTEGER,
    float: DatabaseType.REAL,
    str: DatabaseType.TEXT,
    bool: DatabaseType.BLOB,
}


def unwrap_optional(annotation: Any) -> Any:
    """Strip ``Optional[...]`` / ``X | None`` down to the single inner type."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def classify(python_type: Any) -> Optional[DatabaseType]:
    """Database type for a Python type, or None when unsupported."""
    # Exact lookup so bool never classifies as int.
    try:
        return _TYPE_TABLE.get(python_type)
    except TypeError:
        return None


def table_name(model: Type[BaseModel]) -> str:
    """``__tablename__`` when declared, else the class name lower-cased."""
    return getattr(model, "__tablename__", None) or model.__name__.lower()


def _column_attrs(info: FieldInfo) -> Dict[str, bool]:
    extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
    attrs = extra.get(COLUMN_EXTRA_KEY) or {}
    return {"index": bool(attrs.get("index")), "ignore": bool(attrs.get("ignore"))}


def _ordered_field_names(model: Type[BaseModel]) -> List[str]:
    fields = model.model_fields
    names: List[str] = []
    for klass in model.__mro__:
        if klass is BaseModel or not (isinstance(klass, type) and issubclass(klass, BaseModel)):
            continue
        for name in inspect.get_annotations(klass):
            if name in fields and name not in names:
                names.append(name)
    return names


@lru_cache(maxsize=None)
def _describe(model: Type[BaseModel], strict: bool) -> Tuple[FieldMeta, ...]:
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise TypeError(f"{model!r} is not a pydantic model class")
    entries: List[FieldMeta] = []
    fields = model.model_fields
    for name in _ordered_field_names(model):
        info = fields[name]
        attrs = _column_attrs(info)
        if attrs["ignore"]:
            continue
        python_type = unwrap_optional(info.annotation)
        db_type = classify(python_type)
        if db_type is None and strict:
            raise UnsupportedTypeError(model.__name__, name, python_type)
        entries.append(
            FieldMeta(
                name=name,
                python_type=python_type,
                db_type=db_type,
                ignore=False,
                index=attrs["index"],
            )
        )
    return tuple(entries)


def introspect(model: Type[BaseModel], strict: bool = True) -> Dict[str, FieldMeta]:
    """
    Build the ordered field-name -> FieldMeta mapping for a record type.

    Parameters
    ----------
    model : type[BaseModel]
        Record type to describe.
    strict : bool
        When True, a field whose type has no database classification raises
        UnsupportedTypeError. The read path passes False and gets
        ``db_type=None`` entries instead.

    Returns
    -------
    dict[str, FieldMeta]
        A fresh dict; the metadata table behind it is built once per type.
    """
    return {meta.name: meta for meta in _describe(model, strict)}


def column_types(model: Type[BaseModel]) -> Dict[str, DatabaseType]:
    """Column name -> database type for every mapped field."""
    return {name: meta.db_type for name, meta in introspect(model).items()}


def index_specs(model: Type[BaseModel]) -> List[Tuple[str, str]]:
    """Declared ``(index name, column)`` pairs, named ``idx_<table>_<column>``."""
    table = table_name(model)
    return [
        (f"idx_{table}_{name}", name)
        for name, meta in introspect(model).items()
        if meta.index
    ]


def record_values(record: BaseModel) -> Dict[str, Any]:
    """Field name -> current value for every mapped field of a record instance."""
    return {name: getattr(record, name, None) for name in introspect(type(record))}


__all__ = [
    "PRIMARY_KEY",
    "classify",
    "column_types",
    "index_specs",
    "introspect",
    "record_values",
    "table_name",
    "unwrap_optional",
]
