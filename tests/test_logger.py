"""Tests for the logging setup module."""

import io
import logging

import pytest

from idscan.utils.logger import get_logger, setup_logging


@pytest.fixture
def clean_root():
    """Detach root handlers for the duration of a test."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    root.handlers.clear()
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self, clean_root: logging.Logger) -> None:
        clean_root.handlers.clear()
        setup_logging("DEBUG")
        assert len(clean_root.handlers) == 1
        assert clean_root.level == logging.DEBUG

    def test_setup_idempotent(self, clean_root: logging.Logger) -> None:
        clean_root.handlers.clear()
        setup_logging("INFO")
        count = len(clean_root.handlers)
        setup_logging("DEBUG")
        assert len(clean_root.handlers) == count
        assert clean_root.level == logging.INFO

    def test_setup_invalid_level_defaults_to_info(self, clean_root: logging.Logger) -> None:
        clean_root.handlers.clear()
        setup_logging("NONEXISTENT")
        assert clean_root.level == logging.INFO

    def test_writes_formatted_records(self, clean_root: logging.Logger) -> None:
        clean_root.handlers.clear()
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)
        get_logger("idscan.test").info("cropped %d images", 3)
        line = stream.getvalue()
        assert "idscan.test - INFO - cropped 3 images" in line

    def test_quiets_pillow_debug(self, clean_root: logging.Logger) -> None:
        clean_root.handlers.clear()
        setup_logging("DEBUG")
        assert logging.getLogger("PIL").level == logging.INFO


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        logger1 = get_logger("test.same")
        logger2 = get_logger("test.same")
        assert logger1 is logger2
