"""
Pytest configuration for ormlet.

Provides fixtures for:
- Settings pointing at a throwaway SQLite file
- An open Database with the shared record types registered
- Recording of the statements a Runner executes
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator, List

import pytest

from ormlet import Database, Settings, connect
from ormlet.config import get_settings
from ormlet.infrastructure.runner import Runner
from tests.records import Book, User

# Small pool so tests open few files and exhaustion is reachable.
TEST_INIT_SIZE = 1
TEST_MAX_SIZE = 8
TEST_MAX_IDLE = 4
TEST_POOL_TIMEOUT = 5.0


def sqlite_url(path: Path) -> str:
    return f"sqlite:///{path}"


@pytest.fixture(autouse=True)
def _fresh_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_settings(tmp_path: Path) -> Settings:
    """Settings for a file database under the test's tmp_path."""
    return Settings(
        url=sqlite_url(tmp_path / "ormlet-test.db"),
        init_size=TEST_INIT_SIZE,
        max_size=TEST_MAX_SIZE,
        min_idle=0,
        max_idle=TEST_MAX_IDLE,
        pool_timeout=TEST_POOL_TIMEOUT,
        connect_attempts=1,
    )


@pytest.fixture
def db(sqlite_settings: Settings) -> Generator[Database, None, None]:
    """Open Database with User and Book registered; closed after the test."""
    database = connect(sqlite_settings)
    database.tables(User, Book)
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def executed(monkeypatch: pytest.MonkeyPatch) -> List[str]:
    """
    Rendered text of every statement passed to ``Runner.execute_update``.

    The statements still run; the list only observes them.
    """
    seen: List[str] = []
    original = Runner.execute_update

    def _recording(self: Runner, statement):
        seen.append(statement.render())
        return original(self, statement)

    monkeypatch.setattr(Runner, "execute_update", _recording)
    return seen
