"""
Connection helpers for the target PostgreSQL database.

Accepts either a ``postgresql://`` URL or a libpq ``key=value`` string.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import psycopg
from psycopg.conninfo import conninfo_to_dict, make_conninfo

from dbsecrets.core.config import settings

_REDACTED = "*****"


def connect(dsn: str) -> psycopg.Connection:
    """Open a connection; the driver enforces EXTERNAL_DB_CONNECT_TIMEOUT."""
    return psycopg.connect(dsn, connect_timeout=settings.EXTERNAL_DB_CONNECT_TIMEOUT)


def redact_dsn(dsn: str) -> str:
    """Return *dsn* with every password replaced, keeping URL or key=value form."""
    if not dsn:
        return dsn
    if "://" in dsn:
        return _redact_url(dsn)
    try:
        params = conninfo_to_dict(dsn)
    except psycopg.ProgrammingError:
        # Unparseable strings may still carry a secret
        return _REDACTED
    if params.get("password"):
        params["password"] = _REDACTED
    return make_conninfo("", **params)


def _redact_url(dsn: str) -> str:
    parts = urlsplit(dsn)
    if parts.password is not None:
        userinfo, _, hostinfo = parts.netloc.rpartition("@")
        user = userinfo.split(":", 1)[0]
        parts = parts._replace(netloc=f"{user}:{_REDACTED}@{hostinfo}")
    query = parse_qsl(parts.query, keep_blank_values=True)
    if any(k == "password" for k, _ in query):
        query = [(k, _REDACTED if k == "password" else v) for k, v in query]
        parts = parts._replace(query=urlencode(query, safe="*"))
    return urlunsplit(parts)
