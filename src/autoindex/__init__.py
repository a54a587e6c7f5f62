"""
autoindex - directory listing generator and file server.
"""

__version__ = "1.0.0"
