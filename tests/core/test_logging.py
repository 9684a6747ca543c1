"""Tests for structlog configuration."""
import json
import logging

import pytest
import structlog

from capsule_workflow.core.logging import configure_structlog

pytestmark = pytest.mark.unit


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    existing, level = set(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        if handler not in existing:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_output_carries_context(restore_logging, capsys):
    """JSON lines include bound context variables."""
    configure_structlog(log_level="INFO", json_logs=True)
    logger = structlog.get_logger("capsule_workflow.test")

    with structlog.contextvars.bound_contextvars(correlation_id="abc-123", party="a"):
        logger.info("item_voted", vote="approve")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    entry = json.loads(line)
    assert entry["event"] == "item_voted"
    assert entry["correlation_id"] == "abc-123"
    assert entry["party"] == "a"
    assert entry["level"] == "info"
    assert "timestamp" in entry


def test_sql_loggers_quietened(restore_logging):
    """SQLAlchemy and aiosqlite loggers stay at WARNING."""
    configure_structlog(log_level="DEBUG", json_logs=False)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.WARNING
