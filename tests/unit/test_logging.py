from __future__ import annotations

import json
import logging

import pytest

from ormlet.utils.logging import ConsoleFormatter, _json_formatter, configure_logging, get_logger

EXPECTED_ROWS = 10
EXPECTED_TIMEOUT = 30


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="ormlet.schema",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Added column",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_standard_extra_fields() -> None:
    payload = json.loads(_json_formatter(_record(table="user", column="email", rows=EXPECTED_ROWS)))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "ormlet.schema"
    assert payload["message"] == "Added column"
    assert payload["table"] == "user"
    assert payload["column"] == "email"
    assert payload["rows"] == EXPECTED_ROWS


def test_json_formatter_supports_nested_extra_field() -> None:
    payload = json.loads(_json_formatter(_record(extra={"pool_timeout": EXPECTED_TIMEOUT})))

    assert payload["pool_timeout"] == EXPECTED_TIMEOUT
    assert "extra" not in payload


def test_json_formatter_stringifies_unknown_values() -> None:
    payload = json.loads(_json_formatter(_record(model=object)))

    assert payload["model"] == str(object)


def test_console_formatter_appends_extra_fields() -> None:
    line = ConsoleFormatter("%(levelname)s %(message)s").format(_record(table="user", column="email"))

    assert line == "INFO Added column | column=email table=user"


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger().name == "ormlet"
    assert get_logger("ormlet.db").name == "ormlet.db"
    assert get_logger("tools").name == "ormlet.tools"


def test_configure_logging_installs_one_handler() -> None:
    logger = logging.getLogger("ormlet")
    saved_handlers, saved_level = logger.handlers[:], logger.level
    try:
        configure_logging(level="DEBUG", json_logs=True)
        handlers = logger.handlers[:]

        assert len(handlers) == 1
        assert logger.level == logging.DEBUG
        assert isinstance(handlers[0].formatter, logging.Formatter)

        configure_logging(level="INFO", force=False)
        assert logger.handlers == handlers
        assert logger.level == logging.DEBUG
    finally:
        logger.handlers = saved_handlers
        logger.setLevel(saved_level)


def test_library_logs_reach_caplog(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="ormlet"):
        get_logger("ormlet.schema").info("Created index", extra={"index": "idx_user_uid"})

    assert caplog.records[-1].index == "idx_user_uid"
