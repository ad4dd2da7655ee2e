"""
Tests for structured logging setup.
"""

import json
import logging

import pytest
import structlog

from utilities.logger import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo global logging configuration after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_file_logging(tmp_path):
    """Test that JSON entries are written to the configured file."""
    log_file = tmp_path / "logs" / "api.log"

    setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))
    structlog.get_logger("bookapi.test").info("Book created successfully", book_id=3)

    lines = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
    entry = lines[-1]
    assert entry["event"] == "Book created successfully"
    assert entry["book_id"] == 3
    assert entry["level"] == "info"
    assert entry["logger"] == "bookapi.test"
    assert "timestamp" in entry


def test_level_filtering(tmp_path):
    """Test that entries below the configured level are dropped."""
    log_file = tmp_path / "api.log"

    setup_logging(log_level="WARNING", log_format="json", log_file=str(log_file))
    logger = structlog.get_logger("bookapi.test")
    logger.info("Fetching all books")
    logger.warning("Book not found", book_id=9)

    events = [json.loads(line)["event"] for line in log_file.read_text().splitlines() if line.strip()]
    assert events == ["Book not found"]
