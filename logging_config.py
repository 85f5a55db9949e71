"""
Logging Configuration

Centralized logging configuration for the orbit ephemeris library.
Library modules declare ``logger = logging.getLogger(__name__)``; this module
decides where those records go.

Usage:
    from logging_config import configure_logging, get_logger

    configure_logging(logging.DEBUG)
    logger = get_logger(__name__)
    logger.info("Next pass found")
"""

import logging
import sys
from typing import Optional, Union

from config import config

# Default logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Parameters
    ----------
    level : int or str, optional
        Logging level (e.g., logging.DEBUG or "DEBUG"). Defaults to the
        ORBIT_EPHEM_LOG_LEVEL environment setting.
    log_file : str, optional
        Path to log file. If None, logs only to console.
    """
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Parameters
    ----------
    name : str
        Name of the logger (typically __name__)

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    return logging.getLogger(name)


# Configure default logging on module import
configure_logging()
