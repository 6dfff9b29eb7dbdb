"""Utility modules for response cache."""

from .log import configure_logging
from .scheduler import PeriodicTask

__all__ = [
    "PeriodicTask",
    "configure_logging",
]
