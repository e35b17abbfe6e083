"""
Configuration store: the connection config kept as one JSON row under a
fixed key. Writes replace the whole record; there is no versioning and no
retry here.
"""

import logging
import threading
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from dbsecrets.core.db import engine
from dbsecrets.models import CONNECTION_CONFIG_KEY, ConnectionConfig, StorageEntry

_log = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """The durable store could not read or accept the record."""


class ConfigStore:
    """get/put of the single ConnectionConfig record."""

    def __init__(self, engine: Engine, key: str = CONNECTION_CONFIG_KEY) -> None:
        self._engine = engine
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def put(self, config: ConnectionConfig) -> None:
        """Overwrite the stored record with *config*."""
        payload = config.model_dump_json(by_alias=True)
        try:
            with Session(self._engine) as session:
                entry = session.get(StorageEntry, self._key)
                if entry is None:
                    entry = StorageEntry(key=self._key, value=payload)
                else:
                    entry.value = payload
                    entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        _log.debug("Stored %s", self._key)

    def get(self) -> ConnectionConfig | None:
        """Return the stored record, or None if nothing was written yet."""
        try:
            with Session(self._engine) as session:
                entry = session.get(StorageEntry, self._key)
                if entry is None:
                    return None
                payload = entry.value
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        try:
            return ConnectionConfig.model_validate_json(payload)
        except ValidationError as e:
            raise StorageError(f"corrupt record at {self._key}: {e}") from e


_store: ConfigStore | None = None
_store_lock = threading.Lock()


def get_config_store() -> ConfigStore:
    """Return the process-wide ConfigStore bound to the storage engine."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = ConfigStore(engine)
    return _store
