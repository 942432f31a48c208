"""Shared logging setup.

stdout carries the JSON-RPC stream, so every handler writes to stderr.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int | str = logging.INFO, *, verbose: bool = False) -> logging.Logger:
    """Configure root logging on stderr.

    Args:
        level: Logging level (name or number). Ignored when verbose is set.
        verbose: Force DEBUG level.

    Returns:
        The ``signal_mcp`` logger.
    """
    if verbose:
        level = logging.DEBUG
    elif isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    return logging.getLogger("signal_mcp")
