"""Logging configuration for the URL shortener."""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stdout handler on the root logger.

    Module loggers (logging.getLogger(__name__)) propagate here, as does the
    request logger used by the middleware.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)
