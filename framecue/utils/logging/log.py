"""Console logging for framecue.

Thin wrappers over the standard ``logging`` module so library code can write
``log.info(...)`` without configuring handlers itself. The level defaults to
WARNING and can be raised with the FRAMECUE_LOG_LEVEL environment variable
(e.g. ``FRAMECUE_LOG_LEVEL=debug``).
"""

import logging
import os

BOLD = "\033[1m"
UNDERLINE = "\033[4m"
ITALIC = "\033[3m"
RED = "\033[91m"
ORANGE = "\033[38;5;208m"
YELLOW = "\033[93m"
GREEN = "\033[92m"
BLUE = "\033[94m"
PURPLE = "\033[95m"
RESET_COLOR = "\033[0m"

LOGGER_NAME = "framecue"

_LEVEL_COLORS = {
    logging.DEBUG: BLUE,
    logging.INFO: GREEN,
    logging.WARNING: YELLOW,
    logging.ERROR: RED,
}


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, "")
        return f"{color}[framecue]{RESET_COLOR} {record.getMessage()}"


def get_logger() -> logging.Logger:
    """Return the package logger, attaching a console handler on first use."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_ColorFormatter())
        logger.addHandler(handler)
        level = os.environ.get("FRAMECUE_LOG_LEVEL", "WARNING").upper()
        logger.setLevel(getattr(logging, level, logging.WARNING))
    return logger


def debug(message: str) -> None:
    get_logger().debug(message)


def info(message: str) -> None:
    get_logger().info(message)


def warning(message: str) -> None:
    get_logger().warning(message)


def error(message: str) -> None:
    get_logger().error(message)
