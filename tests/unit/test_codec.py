from __future__ import annotations

from datetime import datetime

from ormlet.domain.codec import SKIP, from_column, storage_value, to_literal, to_param
from ormlet.domain.models import DatabaseType


def test_literals() -> None:
    assert to_literal(None) == "NULL"
    assert to_literal(True) == "1"
    assert to_literal(False) == "0"
    assert to_literal("ada") == "'ada'"
    assert to_literal(42) == "42"
    assert to_literal(2.5) == "2.5"


def test_text_literal_is_not_escaped() -> None:
    assert to_literal("o'neil") == "'o'neil'"


def test_params_turn_booleans_into_integers() -> None:
    assert to_param(True) == 1
    assert to_param(False) == 0
    assert to_param("x") == "x"
    assert to_param(None) is None


def test_storage_value_for_blob_columns() -> None:
    assert storage_value(True, DatabaseType.BLOB) == 1
    assert storage_value(None, DatabaseType.BLOB) is None
    assert storage_value(3, DatabaseType.INTEGER) == 3


def test_from_column_decodes_supported_types() -> None:
    assert from_column(5, int) == 5
    assert from_column("5", int) == 5
    assert from_column(1.5, float) == 1.5
    assert from_column(3, str) == "3"
    assert from_column(1, bool) is True
    assert from_column(0, bool) is False
    assert from_column(b"\x01", bool) is True
    assert from_column("true", bool) is True


def test_null_decodes_to_none() -> None:
    assert from_column(None, int) is None
    assert from_column(None, bool) is None


def test_unknown_types_are_skipped_on_read() -> None:
    assert from_column("2024-01-01", datetime) is SKIP
    assert from_column(None, datetime) is SKIP
