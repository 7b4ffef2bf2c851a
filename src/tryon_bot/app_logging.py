"""Logging configuration helpers."""

import logging

# httpx logs full request URLs at INFO, and inbound media URLs carry access tokens.
_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai")


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the tryon_bot logger with a single stream handler."""
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logger = logging.getLogger("tryon_bot")
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
