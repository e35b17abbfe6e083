"""
Writes to config/connection: validate, then persist, then invalidate the pool.

An update that fails validation is rejected as a whole: nothing is stored
and the live pool is left alone. A storage failure propagates to the caller
and also leaves the pool alone. Only after the record is stored is the pool
invalidated, exactly once, before update() returns.
"""

import logging
import threading
from collections.abc import Callable

from dbsecrets.core.defaults import compute_defaults
from dbsecrets.core.pool import get_pool_manager
from dbsecrets.core.storage import ConfigStore, get_config_store
from dbsecrets.core.validator import ConnectionValidationError, validate_connection
from dbsecrets.models import ConnectionConfig
from dbsecrets.schemas import ConnectionConfigIn, ErrorResponse

_log = logging.getLogger(__name__)


class ConnectionConfigService:
    """Owns every write to the stored ConnectionConfig."""

    def __init__(
        self,
        store: ConfigStore,
        invalidate: Callable[[], None],
        *,
        validate: Callable[[str], None] = validate_connection,
    ) -> None:
        self._store = store
        self._invalidate = invalidate
        self._validate = validate
        # Held from put() through invalidate() so two updates cannot interleave
        self._commit_lock = threading.Lock()

    def update(self, body: ConnectionConfigIn) -> ErrorResponse | None:
        """
        Apply *body* as the new connection config.

        Returns an ErrorResponse when the connection cannot be validated and
        None on success. StorageError from the store is not caught.
        """
        sizes = compute_defaults(body.max_open_connections, body.max_idle_connections)
        config = ConnectionConfig(
            connection_url=body.connection_url,
            connection_string=body.value,
            max_open_connections=sizes.max_open,
            max_idle_connections=sizes.max_idle,
        )

        # No lock here: validation touches no shared state
        try:
            self._validate(config.dsn)
        except ConnectionValidationError as e:
            _log.info("Rejected connection config: %s", e)
            return ErrorResponse(errors=[f"Error validating connection info: {e}"])

        with self._commit_lock:
            self._store.put(config)
            self._invalidate()
        _log.info(
            "Connection config updated (max_open=%d, max_idle=%d)",
            sizes.max_open,
            sizes.max_idle,
        )
        return None

    def read(self) -> ConnectionConfig | None:
        """Return the stored config, or None if it was never written."""
        return self._store.get()


_service: ConnectionConfigService | None = None
_service_lock = threading.Lock()


def get_connection_config_service() -> ConnectionConfigService:
    """Return the singleton service wired to the process-wide store and pool."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = ConnectionConfigService(
                    store=get_config_store(),
                    invalidate=get_pool_manager().invalidate,
                )
    return _service
