"""Minimal logging utilities for Ristra.

Provides a simple get_logger function that wraps the standard library logging.
The library never installs handlers; applications configure output.

Example:
    >>> from ristra.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Cloned busy pattern")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "ristra." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("pool")
        >>> logger.name
        'ristra.pool'
    """
    if not (name == "ristra" or name.startswith("ristra.")):
        name = f"ristra.{name}"
    return logging.getLogger(name)
