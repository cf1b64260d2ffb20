"""
Schema reconciliation against a real SQLite file.

``executed`` records every DDL statement so idempotence and the additive
migration steps can be asserted exactly.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List

import pytest

from ormlet import Database, UnsupportedTypeError
from tests.records import Book, Event, MemberV1, MemberV2, User

THREADS = 4


def test_registration_creates_tables_and_declared_indexes(db: Database) -> None:
    snapshot = db.schema.refresh(User)

    assert list(snapshot.columns) == ["id", "uid", "name", "age", "vip"]
    assert snapshot.columns["vip"] == "blob"
    assert snapshot.indexes == {"idx_user_uid": "uid"}


def test_registration_is_idempotent(db: Database, executed: List[str]) -> None:
    executed.clear()
    db.tables(User, Book)

    assert executed == [
        "CREATE TABLE IF NOT EXISTS user "
        "(id integer primary key autoincrement, uid integer, name text, age integer, vip blob)",
        "CREATE TABLE IF NOT EXISTS book "
        "(id integer primary key autoincrement, name text, author text, price real)",
    ]


def test_new_fields_are_added_and_indexes_converge(db: Database, executed: List[str]) -> None:
    db.tables(MemberV1)
    db.insert(MemberV1(name="ada"))
    executed.clear()

    db.tables(MemberV2)

    assert executed == [
        "CREATE TABLE IF NOT EXISTS member (id integer primary key autoincrement, "
        "name text, email text, score real, active blob)",
        "ALTER TABLE member ADD COLUMN email text",
        "ALTER TABLE member ADD COLUMN score real",
        "ALTER TABLE member ADD COLUMN active blob",
        "CREATE INDEX IF NOT EXISTS idx_member_email ON member (email)",
        "DROP INDEX IF EXISTS idx_member_name",
    ]
    rows = db.find_all(MemberV2)
    assert [(row.name, row.email) for row in rows] == [("ada", None)]
    assert db.schema.refresh(MemberV2).indexes == {"idx_member_email": "email"}


def test_columns_are_never_dropped(db: Database) -> None:
    db.tables(MemberV2)
    db.tables(MemberV1)

    snapshot = db.schema.refresh(MemberV1)
    assert list(snapshot.columns) == ["id", "name", "email", "score", "active"]
    assert snapshot.indexes == {"idx_member_name": "name"}


def test_index_declared_by_any_type_in_the_batch_survives(db: Database) -> None:
    db.tables(MemberV1, MemberV2)

    assert db.schema.refresh(MemberV1).indexes == {
        "idx_member_name": "name",
        "idx_member_email": "email",
    }


def test_unsupported_type_fails_before_any_ddl(db: Database, executed: List[str]) -> None:
    executed.clear()
    with pytest.raises(UnsupportedTypeError):
        db.tables(Book, Event)

    assert executed == []


def test_concurrent_registration_of_the_same_type(db: Database) -> None:
    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        list(pool.map(lambda _: db.tables(MemberV2), range(THREADS)))

    assert list(db.schema.refresh(MemberV2).columns) == ["id", "name", "email", "score", "active"]


def test_drop_removes_table_and_snapshot(db: Database) -> None:
    db.drop(Book)

    assert "book" not in db.schema.cache.tables()
    assert db.schema.refresh(Book).columns == {}
    db.tables(Book)
    assert db.count(Book) == 0
