"""
Connectivity check for candidate connection strings.

Opens a throwaway connection, runs a round trip, and closes it again. Never
reads or writes stored configuration, so it is safe to run for parameters
that were never saved.
"""

import logging
from contextlib import closing

import psycopg

from dbsecrets.core.pool.connection import connect
from dbsecrets.core.pool.health import ping

_log = logging.getLogger(__name__)


class ConnectionValidationError(ValueError):
    """Candidate parameters could not open a connection or answer a ping."""


def validate_connection(dsn: str) -> None:
    """
    Raise ConnectionValidationError with the driver's message if *dsn* is unusable.

    The connection is closed on every exit path.
    """
    try:
        with closing(connect(dsn)) as conn:
            ping(conn)
    except psycopg.Error as e:
        _log.debug("Connection validation failed: %s", e)
        raise ConnectionValidationError(str(e)) from e
