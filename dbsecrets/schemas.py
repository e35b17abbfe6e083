"""
Request and response bodies for the config/connection API.
"""

from pydantic import Field
from sqlmodel import SQLModel


class ConnectionConfigIn(SQLModel):
    """Body for POST /config/connection. Absent fields count as zero values."""

    connection_url: str = Field(
        default="",
        description="DB connection string (postgresql:// URL or key=value form).",
    )
    value: str = Field(
        default="",
        description="DB connection string. Use 'connection_url' instead. "
        "This will be deprecated.",
        json_schema_extra={"deprecated": True},
    )
    max_open_connections: int = Field(
        default=0,
        description="Maximum number of open connections to the database; "
        "a zero uses the default value of two and a negative value means unlimited.",
    )
    max_idle_connections: int = Field(
        default=0,
        description="Maximum number of idle connections to the database; "
        "a zero uses the value of max_open_connections and a negative value "
        "disables idle connections. If larger than max_open_connections it "
        "will be reduced to the same size.",
    )


class ConnectionConfigPublic(SQLModel):
    """Response for GET /config/connection; passwords are redacted."""

    connection_url: str
    value: str
    max_open_connections: int
    max_idle_connections: int


class ErrorResponse(SQLModel):
    """Rejected request: returned to the caller as data, not raised."""

    errors: list[str]
