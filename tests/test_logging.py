"""Tests for logging helpers."""

import logging
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

from newsingest.utils.logging import configure_logging, get_logger, mask_secret


def test_get_logger_namespaces_under_package():
    assert get_logger("client").name == "newsingest.client"
    assert get_logger("newsingest.db").name == "newsingest.db"


def test_rich_console_by_default():
    logger = configure_logging(level="debug")

    assert logger.level == logging.DEBUG
    assert isinstance(logger.handlers[0], RichHandler)
    assert logger.propagate is False


def test_text_format_with_file(tmp_path):
    log_file = tmp_path / "logs" / "newsingest.log"

    logger = configure_logging(level="INFO", log_format="text", file_path=str(log_file))
    get_logger("test").info("hello from the pipeline")
    for handler in logger.handlers:
        handler.flush()

    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    assert "hello from the pipeline" in log_file.read_text()


def test_reconfigure_replaces_handlers():
    configure_logging(log_format="text")
    logger = configure_logging(log_format="text")

    assert len(logger.handlers) == 1


def test_mask_secret():
    assert mask_secret("abcdef123456") == "********3456"
    assert mask_secret("abc") == "***"
    assert mask_secret(None) == ""
