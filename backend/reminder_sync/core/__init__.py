"""Core configuration and utilities.

This package contains core functionality including:
- Configuration management (config.py)
- Logging setup (logging.py)
- Exception hierarchy (exceptions.py)
- Injected time sources (clock.py)
"""

from reminder_sync.core.clock import Clock, FixedClock, SystemClock
from reminder_sync.core.config import settings

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "settings",
]
