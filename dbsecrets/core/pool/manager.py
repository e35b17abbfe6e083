"""
Connection pool for the configured target database.

One pool per process, parameterised by the stored config/connection record.
Honors max_open_connections / max_idle_connections, health-checks idle
connections on checkout, evicts by max age, and can be invalidated so the
next checkout rebuilds from whatever record is stored at that moment.

Every connection is tagged with the pool generation it was opened under.
invalidate() bumps the generation: idle connections are closed right away,
checked-out ones keep working and are closed when released. With Redis
enabled the generation is shared, so other processes drop their pools too.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

import psycopg
import redis

from dbsecrets.core.config import settings
from dbsecrets.core.defaults import PoolSizes, compute_defaults
from dbsecrets.core.redis_client import get_redis
from dbsecrets.core.storage import get_config_store
from dbsecrets.models import ConnectionConfig

from .connection import connect
from .health import health_check

_log = logging.getLogger(__name__)

_PING_IDLE_THRESHOLD = 30.0  # only ping connections idle longer than this (seconds)
_GENERATION_KEY = "dbsecrets:pool:generation"
_UNSEEN = object()


class PoolNotConfiguredError(RuntimeError):
    """No connection config has been stored yet."""

    def __init__(self) -> None:
        super().__init__("configure the DB connection with config/connection first")


class PoolTimeoutError(TimeoutError):
    """max_open_connections reached and no connection was released in time."""


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float  # time.monotonic() when last returned to pool


class PoolManager:
    """Generation-tagged pool for the single configured database."""

    def __init__(self, loader: Callable[[], ConnectionConfig | None]) -> None:
        self._loader = loader
        self._cond = threading.Condition()
        self._config: ConnectionConfig | None = None
        self._sizes: PoolSizes | None = None
        self._generation = 0
        self._idle: list[_PoolEntry] = []
        self._open = 0  # current-generation connections, idle or checked out
        self._checked_out: dict[int, tuple[int, float]] = {}  # id(conn) -> (generation, created_at)
        self._remote_generation: Any = _UNSEEN
        self._max_age = float(settings.EXTERNAL_DB_POOL_MAX_AGE_SEC)
        self._acquire_timeout = float(settings.EXTERNAL_DB_POOL_ACQUIRE_TIMEOUT)

    @property
    def generation(self) -> int:
        return self._generation

    def get_connection(self) -> Any:
        """
        Check out a healthy connection, reusing an idle one when possible.

        Raises PoolNotConfiguredError when nothing is stored and
        PoolTimeoutError when max_open_connections stays exhausted for
        EXTERNAL_DB_POOL_ACQUIRE_TIMEOUT seconds.
        """
        self._sync_remote_generation()
        deadline = time.monotonic() + self._acquire_timeout
        while True:
            with self._cond:
                config, sizes = self._ensure_config()
                generation = self._generation
                entry = self._idle.pop() if self._idle else None
                if entry is None:
                    if self._at_capacity(sizes):
                        remaining = deadline - time.monotonic()
                        if remaining <= 0 or not self._cond.wait(remaining):
                            raise PoolTimeoutError(
                                f"no connection available within {self._acquire_timeout}s "
                                f"(max_open_connections={sizes.max_open})"
                            )
                        continue
                    self._open += 1

            if entry is not None:
                if self._is_expired(entry) or (
                    time.monotonic() - entry.last_used > _PING_IDLE_THRESHOLD
                    and not health_check(entry.conn)
                ):
                    self._discard(entry.conn, generation)
                    continue
                if self._check_out(entry.conn, generation, entry.created_at):
                    return entry.conn
                continue

            try:
                conn = connect(config.dsn)
            except psycopg.Error:
                with self._cond:
                    if generation == self._generation:
                        self._open -= 1
                        self._cond.notify()
                raise
            if self._check_out(conn, generation, time.monotonic()):
                return conn

    def release(self, conn: Any) -> None:
        """Return *conn* to the idle list, or close it if it is stale or not wanted."""
        with self._cond:
            generation, created_at = self._checked_out.pop(id(conn), (None, 0.0))
        if generation != self._generation:
            # Opened under a superseded config, or not ours
            self._close_quiet(conn)
            return

        try:
            conn.rollback()
        except psycopg.Error:
            self._discard(conn, generation)
            return

        with self._cond:
            if generation == self._generation and self._sizes is not None:
                if len(self._idle) < max(self._sizes.max_idle, 0):
                    self._idle.append(
                        _PoolEntry(conn=conn, created_at=created_at, last_used=time.monotonic())
                    )
                    self._cond.notify()
                    return
        self._discard(conn, generation)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """``with pool.connection() as conn:`` checkout that always releases."""
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release(conn)

    def invalidate(self) -> None:
        """
        Drop the current pool; the next checkout reloads the stored config.

        Never raises: close errors are ignored and Redis trouble is only logged.
        """
        generation = self.dispose()
        self._publish_generation()
        _log.info("Connection pool invalidated (generation %d)", generation)

    def dispose(self) -> int:
        """Close idle connections and forget the loaded config, in this process only."""
        with self._cond:
            self._generation += 1
            self._config = None
            self._sizes = None
            entries, self._idle = self._idle, []
            self._open = 0
            self._cond.notify_all()
            generation = self._generation
        for e in entries:
            self._close_quiet(e.conn)
        return generation

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._cond:
            current = sum(1 for g, _ in self._checked_out.values() if g == self._generation)
            return {
                "generation": self._generation,
                "open_connections": self._open,
                "idle_connections": len(self._idle),
                "in_use": current,
                "in_use_stale": len(self._checked_out) - current,
            }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_config(self) -> tuple[ConnectionConfig, PoolSizes]:
        """Load the stored config if needed. Caller holds self._cond."""
        if self._config is None or self._sizes is None:
            config = self._loader()
            if config is None:
                raise PoolNotConfiguredError()
            self._config = config
            self._sizes = compute_defaults(
                config.max_open_connections, config.max_idle_connections
            )
        return self._config, self._sizes

    def _check_out(self, conn: Any, generation: int, created_at: float) -> bool:
        """Hand *conn* out unless the pool was invalidated since it was obtained."""
        with self._cond:
            if generation == self._generation:
                self._checked_out[id(conn)] = (generation, created_at)
                return True
        self._close_quiet(conn)
        return False

    def _at_capacity(self, sizes: PoolSizes) -> bool:
        return sizes.max_open >= 0 and self._open >= sizes.max_open

    def _is_expired(self, entry: _PoolEntry) -> bool:
        return (time.monotonic() - entry.created_at) > self._max_age

    def _discard(self, conn: Any, generation: int) -> None:
        with self._cond:
            if generation == self._generation:
                self._open -= 1
                self._cond.notify()
        self._close_quiet(conn)

    def _sync_remote_generation(self) -> None:
        r = get_redis()
        if r is None:
            return
        try:
            remote = r.get(_GENERATION_KEY)
        except redis.RedisError as e:
            _log.debug("Pool generation lookup failed: %s", e)
            return
        with self._cond:
            if self._remote_generation is _UNSEEN or remote == self._remote_generation:
                self._remote_generation = remote
                return
            self._remote_generation = remote
        _log.info("Pool invalidated by another process, rebuilding")
        self.dispose()

    def _publish_generation(self) -> None:
        r = get_redis()
        if r is None:
            return
        try:
            remote = r.incr(_GENERATION_KEY)
        except redis.RedisError as e:
            _log.debug("Pool generation broadcast failed: %s", e)
            return
        with self._cond:
            self._remote_generation = str(remote)

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except psycopg.Error:
            pass


_pool_manager: PoolManager | None = None
_pool_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Return the singleton PoolManager (thread-safe double-checked locking)."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager(loader=get_config_store().get)
    return _pool_manager
