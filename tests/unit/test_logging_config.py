"""Unit tests for logging setup."""
import logging

import pytest
import structlog

from arena.core.config import LoggingConfig
from arena.utils.logging_config import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


def test_setup_logging_creates_log_file(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "arena.log"
    config = LoggingConfig(log_level="WARNING", log_file=str(log_file))

    setup_logging(config)

    assert log_file.parent.is_dir()
    assert logging.getLogger().level == logging.WARNING
    assert any(
        isinstance(h, logging.FileHandler) and h.baseFilename == str(log_file)
        for h in logging.getLogger().handlers
    )


def test_level_override(tmp_path, restore_logging):
    config = LoggingConfig(log_level="INFO", log_file=str(tmp_path / "arena.log"))

    setup_logging(config, level="debug")

    assert logging.getLogger().level == logging.DEBUG


def test_events_reach_file(tmp_path, restore_logging):
    log_file = tmp_path / "arena.log"
    setup_logging(LoggingConfig(log_level="INFO", log_file=str(log_file)))

    structlog.get_logger("arena.test").info("test.event", value=1)
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = log_file.read_text()
    assert "test.event" in content
    assert '"value": 1' in content
