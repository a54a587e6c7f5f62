"""
Módulo server — Servidor HTTP con listados generados al vuelo.
"""

from .app import create_app, network_urls
from .expiry import ExpiringClear

__all__ = ["create_app", "network_urls", "ExpiringClear"]
