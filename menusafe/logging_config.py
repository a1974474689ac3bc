"""
Logging setup for the menusafe service.
"""
from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the ``menusafe`` logger tree to write to stdout."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("menusafe")
    logger.setLevel(log_level)

    # Avoid duplicate handlers when the app is reloaded
    logger.handlers.clear()
    logger.propagate = False

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    return logger
