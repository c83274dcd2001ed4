"""Logging setup shared by the overlay entry points."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from common.config import Settings, settings
from common.utils import DateTimeUtils

# Package loggers that share the service handlers
PROJECT_LOGGERS = ("common", "translator", "overlay")

# Chatty client libraries used by the pipeline
THIRD_PARTY_LOGGERS = ("openai", "httpx", "httpcore", "redis", "asyncio")

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: str, default: int = logging.INFO) -> int:
    return getattr(logging, level.upper(), default)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: str, level: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    service_name: str, log_file: Optional[str] = None, log_level: Optional[str] = None
) -> logging.Logger:
    """
    Configure console (and optionally file) logging for a service.

    The same handlers are attached to the service logger and to the project
    package loggers, so module-level loggers such as translator.translation_cache
    write to the service's outputs. Calling it again replaces the handlers.

    Args:
        service_name: Name of the service (e.g., 'overlay')
        log_file: Optional log file path. If None, logs only to console
        log_level: Optional log level override. If None, uses settings.log_level

    Returns:
        The service logger
    """
    level = _resolve_level(log_level or settings.log_level)

    handlers: List[logging.Handler] = [_console_handler(level)]
    if log_file:
        handlers.append(_file_handler(log_file, level))

    for name in {service_name, *PROJECT_LOGGERS}:
        target = logging.getLogger(name)
        target.setLevel(level)
        target.handlers.clear()
        for handler in handlers:
            target.addHandler(handler)
        # Prevent propagation to root logger
        target.propagate = False

    return logging.getLogger(service_name)


def get_log_file_path(service_name: str, log_dir: Optional[str] = None) -> str:
    """
    Build the dated log file path of a service, e.g. ./logs/overlay_20260101.log.
    """
    directory = Path(log_dir or settings.log_dir)
    date_string = DateTimeUtils.get_date_string_for_log_file()
    return str(directory / f"{service_name}_{date_string}.log")


def configure_third_party_loggers(level: str = "WARNING") -> None:
    """Raise the level of client library loggers to cut request noise."""
    log_level = _resolve_level(level, logging.WARNING)
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(log_level)


def setup_service_logging(
    service_name: str, app_settings: Optional[Settings] = None
) -> logging.Logger:
    """
    Set up logging for an entry point from configuration.

    Args:
        service_name: Name of the service
        app_settings: Settings override (defaults to the global settings)

    Returns:
        The service logger
    """
    app_settings = app_settings or settings
    configure_third_party_loggers(app_settings.third_party_log_level)

    log_file = None
    if app_settings.log_to_file:
        log_file = get_log_file_path(service_name, app_settings.log_dir)

    return setup_logging(service_name, log_file, app_settings.log_level)
