"""
Tests for structured logging setup.
"""

import json
import logging

import pytest
import structlog

from utilities.logger import QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.setLevel(level)
    for handler in root.handlers:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
    structlog.reset_defaults()


def test_json_log_file(tmp_path):
    log_file = tmp_path / "logs" / "library.log"

    setup_logging(log_level="INFO", log_format="json", log_file=log_file)
    structlog.get_logger("library.service").info("Book added", book_id="b1", user_id="user-1")

    lines = [json.loads(line) for line in log_file.read_text().splitlines()]
    entry = lines[-1]
    assert entry["event"] == "Book added"
    assert entry["book_id"] == "b1"
    assert entry["level"] == "info"
    assert entry["logger"] == "library.service"
    assert "timestamp" in entry


def test_outbound_client_loggers_are_quieted():
    setup_logging(log_level="DEBUG", log_format="console")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_debug_keeps_client_loggers():
    setup_logging(log_level="DEBUG", log_format="console", debug=True)
    assert logging.getLogger("httpx").level == logging.NOTSET
