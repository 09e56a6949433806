"""Database module.

This module provides engine construction and session management.
"""

from reminder_sync.db.session import (
    build_engine,
    build_session_factory,
    session_scope,
    to_async_url,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "session_scope",
    "to_async_url",
]
