"""Unit tests for structured JSON logging."""

from __future__ import annotations

import json
import logging
import re
import sys

import pytest

from alignment_service.logging import JSONFormatter, setup_logging


def make_record(msg: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("alignment", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self) -> None:
        """Records carry timestamp, level, logger and message."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "alignment"
        assert data["message"] == "hello"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}", data["timestamp"])
        assert "extra" not in data

    def test_extra_fields(self) -> None:
        """Fields passed through extra are grouped under 'extra'."""
        data = json.loads(JSONFormatter().format(make_record(session_id="abc", pairs=4)))

        assert data["extra"] == {"session_id": "abc", "pairs": 4}

    def test_exception_included(self) -> None:
        """Exception tracebacks are rendered."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "alignment", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in data["exception"]

    def test_non_serializable_extra(self) -> None:
        """Values JSON cannot encode fall back to str()."""
        data = json.loads(JSONFormatter().format(make_record(side=object())))

        assert data["extra"]["side"].startswith("<object")


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_logger(self) -> None:
        """Logger gets one JSON handler at the requested level."""
        logger = setup_logging("debug", "alignment-test")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.propagate is False

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        """Calling setup twice keeps a single handler."""
        setup_logging("info", "alignment-test")
        logger = setup_logging("warning", "alignment-test")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_invalid_level(self) -> None:
        """Unknown levels are rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("verbose", "alignment-test")
