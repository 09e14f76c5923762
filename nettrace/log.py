"""Logging setup for the command line tools."""

import os
import sys

from loguru import logger


def configure_logging(log_level: str = "WARNING", include_console: bool = True) -> None:
    """Route nettrace logs to stderr.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        include_console: Whether to log to the console at all. NETTRACE_DEBUG
            in the environment forces console output at DEBUG.
    """
    logger.remove()

    if os.getenv("NETTRACE_DEBUG"):
        include_console = True
        log_level = "DEBUG"

    if include_console:
        logger.add(
            sys.stderr,
            format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>",
            level=log_level,
            colorize=True,
        )
