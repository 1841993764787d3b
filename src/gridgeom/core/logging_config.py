"""
gridgeom Logging Configuration

This module provides logging configuration for the gridgeom package.
Users can control logging output through standard Python logging facilities.

Loggers:
    gridgeom.main                    INFO, one line per convenience call
    gridgeom.grid.derivation         DEBUG, grid extents of each derivation step
                                     and the rounded subsampling factors
    gridgeom.grid.operations         DEBUG, dataset geometries and indexers
    gridgeom.referencing.separator   DEBUG, grid dimensions kept for a request
    gridgeom.referencing.operations  DEBUG, pyproj operations in use
    gridgeom.core.config             WARNING, invalid environment overrides
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .config import LOGGER_NAME, DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for gridgeom.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               Can be string or logging constant
        log_file: Optional path to log file
        format_string: Custom format string for log messages
        date_format: Custom date format string

    Returns:
        logging.Logger: Configured logger instance

    Examples:
        # Trace every derivation step (extents, subsampling factors, kept dimensions)
        >>> from gridgeom import setup_logging
        >>> setup_logging(level="DEBUG")

        # Only the derivation steps, without the dataset indexers
        >>> setup_logging(level="DEBUG")
        >>> logging.getLogger("gridgeom.grid.operations").setLevel(logging.INFO)

        # Write logs to file
        >>> setup_logging(log_file='/path/to/gridgeom.log')

        # Disable logging
        >>> import logging
        >>> logging.getLogger('gridgeom').disabled = True
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if format_string is None:
        format_string = DEFAULT_LOG_FORMAT

    if date_format is None:
        date_format = DEFAULT_DATE_FORMAT

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter(format_string, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_path}")

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


# No output by default, only warnings and errors once a handler is configured
_default_logger = logging.getLogger(LOGGER_NAME)
if not _default_logger.handlers:
    _default_logger.addHandler(logging.NullHandler())
_default_logger.setLevel(logging.WARNING)


def set_log_level(level: Union[int, str]) -> None:
    """
    Quickly change the logging level for gridgeom.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Examples:
        >>> from gridgeom import set_log_level
        >>> set_log_level('DEBUG')
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers:
        handler.setLevel(level)
