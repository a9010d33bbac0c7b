"""Structured JSON logging configuration."""

import logging
import sys
from typing import Optional, TextIO

from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


def setup_logger(
    name: str = "azmon_collector",
    level: str = "INFO",
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure structured JSON logging for the collector.

    Each record is one JSON object with ``timestamp``, ``name``, ``level`` and
    ``message`` keys plus any ``extra`` passed by the caller (``resource_id``,
    ``error_type``, ``dropped_timestamps``, ...).

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Log destination, defaults to stderr since stdout carries metrics

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Reconfiguring replaces the previous handler
    logger.handlers = []

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter(
        LOG_FORMAT,
        rename_fields={"levelname": "level"},
        timestamp=True
    ))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
