"""Logging setup for the API process."""

import logging

from config import config

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger (idempotent)."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.logging.format))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level or config.logging.level)
    _configured = True
