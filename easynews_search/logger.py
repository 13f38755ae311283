"""
Logging system for the Easynews search engine.

This module provides a centralized logging configuration that:
- Outputs to stderr, and optionally to a rotating log file
- Reads the log level from EASYNEWS_LOG_LEVEL when none is given
- Formats logs with timestamp, level, module name, and message
- Lets component loggers ("easynews_search.<component>") propagate to
  the package root logger
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "easynews_search"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _level_from_env(default: int = logging.INFO) -> int:
    """
    Resolve the log level from the EASYNEWS_LOG_LEVEL environment variable.

    Args:
        default: Level used when the variable is unset or unknown

    Returns:
        Logging level constant
    """
    value = os.environ.get("EASYNEWS_LOG_LEVEL", "").strip().lower()
    return _LEVELS.get(value, default)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_file: Optional[str] = None,
    log_level: Optional[int] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    force_reconfigure: bool = False,
) -> logging.Logger:
    """
    Setup and configure logger with console and optional file handlers.

    This function configures a logger that:
    1. Writes to stderr with a StreamHandler
    2. Writes to a file with rotation (RotatingFileHandler) when a log file
       is given, either as argument or via EASYNEWS_LOG_FILE
    3. Uses consistent formatting across all handlers

    Args:
        name: Logger name (default: "easynews_search")
        log_file: Path to log file (default: EASYNEWS_LOG_FILE or none)
        log_level: Logging level (default: EASYNEWS_LOG_LEVEL or INFO)
        max_bytes: Maximum log file size before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 5)
        force_reconfigure: Force reconfiguration even if handlers exist (default: False)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times (unless force_reconfigure is True)
    if logger.handlers and not force_reconfigure:
        return logger

    if force_reconfigure and logger.handlers:
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    if log_level is None:
        log_level = _level_from_env()
    logger.setLevel(log_level)

    if log_file is None:
        log_file = os.environ.get("EASYNEWS_LOG_FILE") or None

    # File handler with rotation (only if we have a usable log file path)
    file_handler = None
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        except (OSError, PermissionError):
            # Can't create directory or file, only use stderr output
            file_handler = None

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    if file_handler:
        logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get or create a logger instance.

    If logger is not configured, it will be set up with default settings.
    Child loggers (e.g., "easynews_search.cache") propagate to their
    parent logger instead of getting separate handlers.

    Args:
        name: Logger name (default: "easynews_search")

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if "." in name:
        parent_name = name.split(".")[0]
        parent_logger = logging.getLogger(parent_name)
        if not parent_logger.handlers:
            setup_logger(name=parent_name)
        logger.propagate = True
        return logger

    if not logger.handlers:
        setup_logger(name=name)

    return logger
