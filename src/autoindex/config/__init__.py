"""
Configuration module for autoindex.

Exports the main components for convenient imports.
"""

from .loader import load_config
from .schema import AppConfig, ListingConfig, LoggingConfig, ServerConfig

__all__ = [
    "load_config",
    "AppConfig",
    "ListingConfig",
    "LoggingConfig",
    "ServerConfig",
]
