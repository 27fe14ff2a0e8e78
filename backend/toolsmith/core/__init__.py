"""Core application configuration and utilities.

This package contains core functionality including:
- Configuration management (config.py)
- Logging setup (logging.py)
- Shared exceptions (exceptions.py)
"""

from toolsmith.core.config import settings

__all__ = [
    "settings",
]
