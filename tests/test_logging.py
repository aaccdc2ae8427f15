"""
Tests for logging setup.
"""

import logging

import pytest
from rich.logging import RichHandler

from srasubmit.utils.logging import ROOT_LOGGER, _parse_level, get_logger, setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestParseLevel:
    def test_names_and_ints(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level(logging.ERROR) == logging.ERROR
        assert _parse_level("nonsense") == logging.INFO


class TestSetupLogging:
    """Tests for handler installation."""

    def test_rich_console_handler(self):
        logger = setup_logging(level="DEBUG")
        assert logger.level == logging.DEBUG
        assert [type(h) for h in logger.handlers] == [RichHandler]
        assert logger.propagate is False

    def test_plain_console_handler(self):
        logger = setup_logging(use_rich=False)
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], RichHandler)

    def test_file_handler_writes(self, tmp_path):
        log_file = tmp_path / "logs" / "srasubmit.log"
        setup_logging(level="INFO", log_file=log_file, console_enabled=False)

        get_logger("srasubmit.test").info("staged EXP1")
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()

        text = log_file.read_text()
        assert "srasubmit.test: staged EXP1" in text
        assert "[INFO" in text

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1


class TestFromConfig:
    def test_relative_file_resolved_against_project(self, tmp_path):
        config = {"logging": {"level": "WARNING", "file": "logs/app.log", "console_enabled": False}}
        logger = setup_logging_from_config(config, project_dir=tmp_path)

        assert logger.level == logging.WARNING
        assert (tmp_path / "logs").is_dir()

    def test_file_disabled(self, tmp_path):
        config = {"logging": {"file": "logs/app.log", "file_enabled": False, "console_enabled": False}}
        logger = setup_logging_from_config(config, project_dir=tmp_path)
        assert logger.handlers == []


class TestGetLogger:
    def test_child_of_package_logger(self):
        package_logger = logging.getLogger(ROOT_LOGGER)
        assert get_logger("srasubmit.ingest").parent is package_logger
