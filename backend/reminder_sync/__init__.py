"""Reminder Schedule Sync.

Translates reminder template time configurations into schedule tasks and
keeps them in step with template lifecycle events.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
