"""Structured logger setup shared across services."""

import logging
import os
from typing import Any

from pythonjsonlogger import jsonlogger


def get_logger(name: str) -> logging.Logger:
    """
    Configure a JSON logger once and reuse it.

    The level comes from LOG_LEVEL so tests and local runs can turn on DEBUG
    without touching code.
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


def log_business_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit a domain event as a single structured INFO record."""
    logger.info(event, extra={"event": event, **fields})
