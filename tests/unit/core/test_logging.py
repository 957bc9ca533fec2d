# tests/unit/core/test_logging.py
"""Tests for structured logging configuration."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from wallstore.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_output_carries_structured_fields() -> None:
    stream = io.StringIO()
    configure_logging(json_output=True, level="INFO", stream=stream)

    structlog.get_logger("wallstore.test").warning("Durable write failed", address="0xabc")

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "Durable write failed"
    assert record["address"] == "0xabc"
    assert record["level"] == "warning"
    assert record["logger"] == "wallstore.test"
    assert "_record" not in record


def test_stdlib_records_share_the_handler() -> None:
    stream = io.StringIO()
    configure_logging(json_output=True, level="INFO", stream=stream)

    logging.getLogger("some.library").info("plain %s", "message")

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "plain message"


def test_level_filters_events() -> None:
    stream = io.StringIO()
    configure_logging(json_output=True, level="WARNING", stream=stream)

    structlog.get_logger("wallstore.test").info("quiet")

    assert stream.getvalue() == ""


def test_sqlalchemy_kept_at_warning() -> None:
    configure_logging(level="DEBUG", stream=io.StringIO())

    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_reconfigure_replaces_own_handler_only() -> None:
    foreign = logging.NullHandler()
    logging.getLogger().addHandler(foreign)

    configure_logging(stream=io.StringIO())
    configure_logging(stream=io.StringIO())

    handlers = logging.getLogger().handlers
    assert foreign in handlers
    assert sum(1 for h in handlers if h.get_name() == "wallstore") == 1


def test_unknown_level_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging(level="LOUD", stream=io.StringIO())
