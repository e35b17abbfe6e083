"""
Shared Redis client.

Only used to broadcast pool invalidation between worker processes, so a
missing or unreachable Redis degrades to process-local invalidation.
"""

import logging
import threading

import redis

from dbsecrets.core.config import settings

_LOG = logging.getLogger(__name__)

_lock = threading.Lock()
_client: redis.Redis | None = None
_tried = False


def get_redis() -> redis.Redis | None:
    """Return the shared Redis client (str responses).

    Returns ``None`` when ``REDIS_ENABLED`` is ``False`` or the initial ping
    fails. The outcome is cached for the life of the process.
    """
    global _client, _tried
    if _tried:
        return _client
    with _lock:
        if _tried:
            return _client
        _tried = True
        _client = _create_client()
        return _client


def _create_client() -> redis.Redis | None:
    if not settings.REDIS_ENABLED:
        return None
    try:
        r = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        r.ping()
        return r
    except redis.RedisError as e:
        _LOG.debug("Redis unavailable: %s", e)
        return None


def ping() -> bool:
    """Quick health check: True if the shared client can PING."""
    client = get_redis()
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False
