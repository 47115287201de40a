"""Logging configuration helpers."""

import logging


def configure_logging(level: str = "WARNING") -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger("fithouse")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
