"""
Tests for logging configuration.
"""

import logging
from pathlib import Path

from snapflat.core.observability.logging_config import setup_logging, setup_logging_from_env


class TestSetupLogging:
    def test_default_level_is_info(self):
        setup_logging()
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_debug_format_has_location(self):
        setup_logging(level="debug")
        fmt = logging.getLogger().handlers[0].formatter._fmt
        assert "%(lineno)d" in fmt

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "snapflat.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("snapflat.test").debug("to the file only")
        for handler in root.handlers:
            handler.flush()
        assert "to the file only" in log_file.read_text()

    def test_from_env(self):
        setup_logging_from_env({"SNAPFLAT_LOG_LEVEL": "ERROR"})
        assert logging.getLogger().level == logging.ERROR
