"""Structured logger setup shared across the API and stream Lambdas."""

import logging
import os
from typing import Any

from pythonjsonlogger import jsonlogger


def get_logger(name: str) -> logging.Logger:
    """
    Configure a JSON logger once and reuse it.

    Level defaults to INFO and can be raised or lowered per function
    through LOG_LEVEL.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        "%(levelname)s %(name)s %(message)s %(asctime)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    logger.propagate = False
    return logger


def log_if_slow(
    logger: logging.Logger,
    endpoint: str,
    response_time_ms: int,
    threshold_ms: int,
    **context: Any,
) -> None:
    """Emit a warning for requests at or above the slow threshold."""
    if response_time_ms >= threshold_ms:
        logger.warning(
            "Slow query",
            extra={"endpoint": endpoint, "response_time_ms": response_time_ms, **context},
        )
