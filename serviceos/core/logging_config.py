"""
Logging Configuration Module.

This module provides centralized logging configuration for ServiceOS.
It sets up logging with different levels for different modules.

Features:
- Configurable log levels per module
- Console and optional rotating file logging
- Simple, detailed and JSON line formats
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional


def _get_logging_config() -> Dict[str, Optional[str]]:
    """Get logging configuration from the settings model.

    The settings import is deferred to avoid circular imports during module
    initialization; environment variables are the fallback.
    """
    try:
        from serviceos.server.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": settings.log_file_dir,
        }
    except Exception:
        return {
            "log_level": os.getenv("SERVICEOS_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("SERVICEOS_LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("SERVICEOS_LOG_FILE_DIR"),
        }


SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

FORMATS = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}

LOG_FILE_NAME = "serviceos.log"

# Module-specific log levels
MODULE_LOG_LEVELS = {
    "serviceos.assistants": "DEBUG",
    "serviceos.integrations": "INFO",
    "serviceos.core.database": "INFO",
    "serviceos.server": "INFO",
    "serviceos.server.api": "DEBUG",
    # Third-party libraries (reduce noise)
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file_dir: Optional[str] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        log_file_dir: Directory for the log file; no file handler when neither
            this nor the settings provide one
    """
    config = _get_logging_config()
    level = (log_level or config["log_level"] or "INFO").upper()
    fmt = log_format or config["log_format"] or "detailed"
    file_dir = log_file_dir or config["log_file_dir"]

    formatter = logging.Formatter(FORMATS.get(fmt, DETAILED_FORMAT), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # filter at handler level

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_dir:
        Path(file_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(file_dir) / LOG_FILE_NAME, maxBytes=10 * 1024 * 1024, backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={bool(file_dir)}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
