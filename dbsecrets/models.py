"""
Persisted records for the secrets backend.

StorageEntry is the generic key/value row the backend stores its records in;
ConnectionConfig is the record kept under ``config/connection``.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

CONNECTION_CONFIG_KEY = "config/connection"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StorageEntry(SQLModel, table=True):
    __tablename__ = "storage_entry"

    key: str = Field(primary_key=True, max_length=255)
    value: str = Field(sa_column=Column(Text, nullable=False))  # JSON document
    updated_at: datetime = Field(default_factory=_utc_now)


class ConnectionConfig(BaseModel):
    """Connection settings for the target database. Always stored whole."""

    model_config = ConfigDict(populate_by_name=True)

    connection_url: str = ""
    # Deprecated, kept for records written before connection_url existed
    connection_string: str = PydanticField(default="", alias="value")
    max_open_connections: int = 0
    max_idle_connections: int = 0

    @property
    def dsn(self) -> str:
        """Connection string to use: connection_url when set, else the legacy value."""
        return self.connection_url or self.connection_string


class Message(SQLModel):
    message: str
