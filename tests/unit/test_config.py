from __future__ import annotations

import pytest
from pydantic import ValidationError

from ormlet import ConfigurationError, Driver, Settings, get_settings

DEFAULT_MAX_SIZE = 200


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("ORM_URL", "ORM_DRIVER", "ORM_MAX_SIZE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.url == "sqlite:///ormlet.db"
    assert settings.max_size == DEFAULT_MAX_SIZE
    assert settings.resolved_driver() is Driver.SQLITE


def test_environment_variables_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORM_URL", "postgresql://app:secret@db:5432/app")
    monkeypatch.setenv("ORM_MAX_SIZE", "12")
    monkeypatch.setenv("ORM_MAX_IDLE", "4")
    monkeypatch.setenv("ORM_MIN_IDLE", "1")
    monkeypatch.setenv("ORM_INIT_SIZE", "2")

    settings = get_settings()

    assert settings.max_size == 12
    assert settings.resolved_driver() is Driver.POSTGRESQL
    assert get_settings() is settings


@pytest.mark.parametrize(
    "url, driver",
    [
        ("postgresql://localhost/app", Driver.POSTGRESQL),
        ("postgres://localhost/app", Driver.POSTGRESQL),
        ("sqlite:///data/app.db", Driver.SQLITE),
        (":memory:", Driver.SQLITE),
        ("relative/app.db", Driver.SQLITE),
    ],
)
def test_driver_is_inferred_from_url(url: str, driver: Driver) -> None:
    assert Settings(url=url).resolved_driver() is driver


def test_explicit_driver_wins() -> None:
    settings = Settings(url="postgresql://localhost/app", driver="sqlite")

    assert settings.resolved_driver() is Driver.SQLITE


def test_unknown_scheme_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        Settings(url="oracle://localhost/app").resolved_driver()


def test_empty_url_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        Settings(url="  ").resolved_driver()


def test_unknown_driver_name_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(driver="oracle")


@pytest.mark.parametrize(
    "overrides",
    [
        {"min_idle": 5, "max_idle": 2},
        {"init_size": 20, "max_size": 10, "max_idle": 5, "min_idle": 1},
        {"max_idle": 30, "max_size": 10, "init_size": 1, "min_idle": 1},
        {"max_size": 0},
        {"pool_timeout": 0},
    ],
)
def test_invalid_pool_sizing_is_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_masked_url_hides_password() -> None:
    settings = Settings(url="postgresql://app:secret@db:5432/app")

    assert settings.masked_url() == "postgresql://app:***@db:5432/app"
    assert Settings(url="sqlite:///app.db").masked_url() == "sqlite:///app.db"
