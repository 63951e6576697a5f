"""
Tests for logging configuration.

Verifies log directory creation, rotation settings, level selection and the
console handler toggle for frozen builds.
"""
import logging
from logging.handlers import RotatingFileHandler

import pytest

from hudcaption.LoggingSetup import LOG_FILE_NAME, setup_logging


@pytest.fixture
def restore_root_logger():
    """Remove handlers installed by setup_logging and restore levels."""
    root_logger = logging.getLogger()
    level = root_logger.level
    websockets_level = logging.getLogger("websockets").level
    yield
    for handler in list(root_logger.handlers):
        if isinstance(handler, RotatingFileHandler) or type(handler) is logging.StreamHandler:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)
    logging.getLogger("websockets").setLevel(websockets_level)


class TestLoggingConfiguration:

    def test_creates_directory_and_log_file(self, tmp_path, restore_root_logger):
        logs_dir = tmp_path / "nested" / "logs"

        log_file = setup_logging(logs_dir, verbose=False, is_frozen=True)
        logging.getLogger("hudcaption.test").info("caption test message")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file == logs_dir / LOG_FILE_NAME
        assert "caption test message" in log_file.read_text(encoding="utf-8")

    def test_rotating_handler_limits(self, tmp_path, restore_root_logger):
        setup_logging(tmp_path, is_frozen=True)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 10 * 1024 * 1024
        assert file_handlers[0].backupCount == 5

    def test_verbose_sets_debug_level(self, tmp_path, restore_root_logger):
        setup_logging(tmp_path, verbose=True, is_frozen=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("websockets").level == logging.INFO

    def test_default_level_is_info(self, tmp_path, restore_root_logger):
        setup_logging(tmp_path, verbose=False, is_frozen=True)

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("websockets").level == logging.WARNING

    def test_console_handler_only_when_not_frozen(self, tmp_path, restore_root_logger):
        setup_logging(tmp_path, is_frozen=False)
        handlers = logging.getLogger().handlers

        stream_only = [h for h in handlers
                       if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)]
        assert len(stream_only) == 1

        setup_logging(tmp_path, is_frozen=True)
        handlers = logging.getLogger().handlers
        assert all(isinstance(h, logging.FileHandler) for h in handlers)
