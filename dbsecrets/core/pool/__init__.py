"""
Connection and connection pool for the configured target database.

The pool is built lazily from the stored config/connection record and thrown
away by PoolManager.invalidate() whenever that record changes.
"""

from .connection import connect, redact_dsn
from .health import health_check, ping
from .manager import (
    PoolManager,
    PoolNotConfiguredError,
    PoolTimeoutError,
    get_pool_manager,
)

__all__ = [
    "connect",
    "redact_dsn",
    "ping",
    "health_check",
    "PoolManager",
    "PoolNotConfiguredError",
    "PoolTimeoutError",
    "get_pool_manager",
]
