"""Logging help for the config check entrypoint."""

import logging
import sys
from typing import Optional, TextIO


def _configure_logging(log_level: str, stream: Optional[TextIO] = None) -> None:
    """Configure root-level logging.

    Logs go to stderr by default because stdout carries the redacted config.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL (any case).
        stream: Where log records are written; defaults to the current stderr.
    """
    logging.basicConfig(
        stream=stream or sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
