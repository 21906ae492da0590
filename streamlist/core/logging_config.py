"""Logging setup shared by the app factory and the admin scripts."""
from __future__ import annotations

import logging

LOG_FORMAT = "[%(name)s] %(levelname)s %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Give the ``streamlist`` logger one stream handler and set its level."""
    logger = logging.getLogger("streamlist")
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
