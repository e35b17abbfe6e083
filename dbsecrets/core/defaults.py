"""
Pool-size defaults for the target database connection.

max_open_connections: 0 uses the default of two, a negative value means
unlimited. max_idle_connections: 0 follows max_open_connections, a negative
value disables idle pooling, and anything above max_open_connections is
reduced to it.
"""

from typing import NamedTuple

DEFAULT_MAX_OPEN_CONNECTIONS = 2


class PoolSizes(NamedTuple):
    max_open: int
    max_idle: int


def compute_defaults(raw_max_open: int, raw_max_idle: int) -> PoolSizes:
    max_open = raw_max_open or DEFAULT_MAX_OPEN_CONNECTIONS
    max_idle = raw_max_idle or max_open
    # No upper bound to clamp to when open connections are unlimited
    if max_open >= 0 and max_idle > max_open:
        max_idle = max_open
    return PoolSizes(max_open=max_open, max_idle=max_idle)
