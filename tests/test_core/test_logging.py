"""
Tests for Logging Configuration

Tests for sceneprompt/core/logging_config.py
"""

import logging

import pytest

from sceneprompt.core.logging_config import (
    ROOT_LOGGER_NAME,
    LogContext,
    LogLevel,
    get_logger,
    is_initialized,
    quiet_library_loggers,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestGetLogger:
    """Tests for get_logger()."""

    def test_namespaced(self):
        assert get_logger("pipelines.extractor").name == "sceneprompt.pipelines.extractor"

    def test_already_namespaced(self):
        assert get_logger("sceneprompt.safety").name == "sceneprompt.safety"

    def test_cached(self):
        assert get_logger("core.config") is get_logger("core.config")


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_writes_to_log_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "run.log"

        setup_logging(level=LogLevel.DEBUG, log_file=log_file, console_output=False)
        get_logger("test").info("scene batch started")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert is_initialized()
        assert "scene batch started" in log_file.read_text(encoding="utf-8")

    def test_replaces_handlers(self, restore_root_logger):
        setup_logging(console_output=True)
        setup_logging(console_output=True)

        assert len(restore_root_logger.handlers) == 1
        assert restore_root_logger.level == logging.INFO


class TestLogContext:
    """Tests for LogContext."""

    def test_temporary_level(self):
        logger = get_logger("test.context")
        logger.setLevel(logging.WARNING)

        with LogContext(logger, LogLevel.DEBUG):
            assert logger.level == logging.DEBUG

        assert logger.level == logging.WARNING


class TestQuietLibraryLoggers:
    """Tests for quiet_library_loggers()."""

    def test_raises_threshold(self):
        name = "sceneprompt-test-chatty-lib"
        logging.getLogger(name).setLevel(logging.DEBUG)

        quiet_library_loggers([name])

        assert logging.getLogger(name).level == logging.WARNING
