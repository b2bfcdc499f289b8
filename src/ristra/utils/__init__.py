"""Utility modules for Ristra.

Provides:
- logger: get_logger for logging
"""

from ristra.utils.logger import get_logger

__all__ = [
    "get_logger",
]
