"""Logging setup for processes embedding the concept store.

The library itself only creates module loggers; applications (or the
background dream worker's host) call :func:`configure_logging` once,
typically as ``configure_logging(config.log_level)``.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a stdout handler on the root logger.

    Args:
        level: Level name (e.g. "DEBUG") or numeric logging level.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(level)
