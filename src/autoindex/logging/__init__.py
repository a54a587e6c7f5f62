"""
Logging module - Structured logging system.

Adds a HUMAN level (25) with its own handler for readable progress output.
"""

from .human import HumanLog, HumanLogHandler
from .levels import HUMAN
from .setup import configure_logging

__all__ = [
    "configure_logging",
    "HUMAN",
    "HumanLog",
    "HumanLogHandler",
]
