"""Logging setup for the braque package."""

import logging
import sys

logger = logging.getLogger("braque")


def configure_logging(level: int = logging.INFO, handler: logging.Handler | None = None) -> logging.Logger:
    """Attach a single handler to the package logger and set its level.

    Calling it again replaces the previous handler instead of stacking a new one.
    """
    logger.setLevel(level)
    logger.handlers.clear()

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"))
    handler.setLevel(level)
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, e.g. get_logger("client")."""
    return logger.getChild(name)
