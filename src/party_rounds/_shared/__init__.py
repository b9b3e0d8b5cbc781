# Area: Shared
"""
Shared utilities used by the controller and the CLI.

This package contains:
- Logging configuration
- The in-process navigator
- Client-scoped caches
"""

from .logging_config import setup_logging, log_transaction_error
from .navigation import HistoryNavigator
from .local_cache import MemoryCache, JsonFileCache

__all__ = [
    "setup_logging",
    "log_transaction_error",
    "HistoryNavigator",
    "MemoryCache",
    "JsonFileCache",
]
