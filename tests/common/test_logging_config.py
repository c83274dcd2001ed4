"""Tests for logging configuration."""

import logging
from unittest.mock import patch

import pytest

from common.config import Settings
from common.logging_config import (
    PROJECT_LOGGERS,
    configure_third_party_loggers,
    get_log_file_path,
    setup_logging,
    setup_service_logging,
)


@pytest.fixture(autouse=True)
def restore_loggers():
    """Undo handler changes made by setup_logging."""
    names = ["test-service", *PROJECT_LOGGERS]
    saved = {
        name: (
            list(logging.getLogger(name).handlers),
            logging.getLogger(name).level,
            logging.getLogger(name).propagate,
        )
        for name in names
    }
    yield
    for name, (handlers, level, propagate) in saved.items():
        target = logging.getLogger(name)
        for handler in target.handlers:
            if handler not in handlers:
                handler.close()
        target.handlers[:] = handlers
        target.setLevel(level)
        target.propagate = propagate


class TestSetupLogging:
    def test_configures_service_and_project_loggers(self):
        logger = setup_logging("test-service", log_level="DEBUG")

        assert logger.name == "test-service"
        assert logger.level == logging.DEBUG
        for name in PROJECT_LOGGERS:
            target = logging.getLogger(name)
            assert target.level == logging.DEBUG
            assert target.propagate is False
            assert len(target.handlers) == 1

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging("test-service")
        setup_logging("test-service")

        assert len(logging.getLogger("test-service").handlers) == 1

    def test_writes_to_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "service.log"

        logger = setup_logging("test-service", log_file=str(log_file), log_level="INFO")
        logger.info("hello file")
        for handler in logger.handlers:
            handler.flush()

        assert "hello file" in log_file.read_text()

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("test-service", log_level="chatty")

        assert logger.level == logging.INFO


class TestHelpers:
    def test_log_file_path_contains_service_and_date(self, tmp_path):
        with patch(
            "common.logging_config.DateTimeUtils.get_date_string_for_log_file",
            return_value="20260101",
        ):
            path = get_log_file_path("overlay", str(tmp_path))

        assert path == str(tmp_path / "overlay_20260101.log")

    def test_service_logging_without_file(self):
        settings = Settings(_env_file=None, log_to_file=False, log_level="WARNING")

        logger = setup_service_logging("test-service", settings)

        assert logger.level == logging.WARNING
        assert all(not isinstance(h, logging.FileHandler) for h in logger.handlers)

    def test_service_logging_writes_dated_file(self, tmp_path):
        settings = Settings(_env_file=None, log_dir=str(tmp_path))

        logger = setup_service_logging("test-service", settings)

        assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
        assert list(tmp_path.glob("test-service_*.log"))

    def test_quiets_third_party_loggers(self):
        configure_third_party_loggers("ERROR")

        assert logging.getLogger("httpx").level == logging.ERROR
        assert logging.getLogger("openai").level == logging.ERROR
