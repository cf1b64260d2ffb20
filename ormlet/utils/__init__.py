"""
Utilities package for ormlet.

Exports shared logging helpers. Keep this package free of database logic.
"""

from ormlet.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
