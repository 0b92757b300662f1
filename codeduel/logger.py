"""
Centralized logging configuration for the application.
"""

import logging
import sys

_log_level = logging.INFO


def configure_logging(level: str) -> None:
    """
    Set the level used by every logger created through setup_logger.

    Args:
        level: Level name such as "DEBUG" or "info"
    """
    global _log_level
    _log_level = getattr(logging, level.upper(), logging.INFO)

    for name, existing in logging.Logger.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and name.startswith("codeduel"):
            existing.setLevel(_log_level)
            for handler in existing.handlers:
                handler.setLevel(_log_level)


def setup_logger(name: str) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(_log_level)

    # Console handler with formatting
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_log_level)

    # Structured format: timestamp | level | module | message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


# Create root logger
logger = setup_logger("codeduel")
