from __future__ import annotations

from typing import Optional

import pytest

from ormlet import Column, DatabaseType, Record, UnsupportedTypeError
from ormlet.domain.metadata import (
    classify,
    column_types,
    index_specs,
    introspect,
    record_values,
    table_name,
    unwrap_optional,
)
from tests.records import Event, MemberV1, Note, User


def test_fields_are_ordered_derived_class_first() -> None:
    assert list(introspect(User)) == ["uid", "name", "age", "vip", "id"]
    assert list(introspect(Note)) == ["title", "created", "id"]


def test_introspection_is_deterministic_and_returns_fresh_dicts() -> None:
    first = introspect(User)
    second = introspect(User)

    assert first == second
    assert first is not second
    first.pop("uid")
    assert "uid" in introspect(User)


def test_column_types_follow_the_python_types() -> None:
    assert column_types(User) == {
        "uid": DatabaseType.INTEGER,
        "name": DatabaseType.TEXT,
        "age": DatabaseType.INTEGER,
        "vip": DatabaseType.BLOB,
        "id": DatabaseType.INTEGER,
    }


def test_bool_is_never_classified_as_integer() -> None:
    assert classify(bool) is DatabaseType.BLOB
    assert classify(int) is DatabaseType.INTEGER
    assert classify(float) is DatabaseType.REAL
    assert classify(bytes) is None


def test_optional_annotations_are_unwrapped() -> None:
    assert unwrap_optional(Optional[int]) is int
    assert unwrap_optional(int | None) is int
    assert unwrap_optional(str) is str


def test_ignored_fields_are_not_mapped() -> None:
    meta = introspect(Note)

    assert "scratch" not in meta
    assert not any(entry.ignore for entry in meta.values())


def test_index_flag_is_carried_into_metadata_and_index_names() -> None:
    assert introspect(User)["uid"].index is True
    assert introspect(User)["name"].index is False
    assert index_specs(User) == [("idx_user_uid", "uid")]
    assert index_specs(MemberV1) == [("idx_member_name", "name")]


def test_table_name_defaults_to_lowercased_class_name() -> None:
    assert table_name(User) == "user"
    assert table_name(MemberV1) == "member"


def test_unsupported_field_type_raises_with_field_name() -> None:
    with pytest.raises(UnsupportedTypeError) as excinfo:
        introspect(Event)

    assert excinfo.value.model == "Event"
    assert excinfo.value.field == "happened"
    assert isinstance(excinfo.value, TypeError)


def test_lenient_introspection_keeps_unsupported_fields_untyped() -> None:
    meta = introspect(Event, strict=False)

    assert meta["happened"].db_type is None
    assert meta["name"].db_type is DatabaseType.TEXT


def test_non_model_is_rejected() -> None:
    with pytest.raises(TypeError):
        introspect(dict)  # type: ignore[arg-type]


def test_record_values_reads_every_mapped_field() -> None:
    user = User(uid=7, name="ada", age=36, vip=True)

    assert record_values(user) == {"uid": 7, "name": "ada", "age": 36, "vip": True, "id": None}


def test_column_keeps_other_field_arguments() -> None:
    class Tagged(Record):
        label: Optional[str] = Column("none", index=True, description="display label")

    info = Tagged.model_fields["label"]

    assert info.default == "none"
    assert info.description == "display label"
    assert introspect(Tagged)["label"].index is True
