"""
Domain package for ormlet.

Exports the record declaration helpers, the metadata introspector and the
value codec. Keep this package free of I/O.
"""

from ormlet.domain.metadata import (
    PRIMARY_KEY,
    column_types,
    index_specs,
    introspect,
    record_values,
    table_name,
)
from ormlet.domain.models import Column, DatabaseType, FieldMeta, Record

__all__ = [
    "PRIMARY_KEY",
    "Column",
    "DatabaseType",
    "FieldMeta",
    "Record",
    "column_types",
    "index_specs",
    "introspect",
    "record_values",
    "table_name",
]
