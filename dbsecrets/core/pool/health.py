"""
Liveness probe for target database connections.
"""

from typing import Any

import psycopg


def ping(conn: Any) -> None:
    """Round trip SELECT 1; driver errors propagate."""
    with conn.cursor() as cur:
        cur.execute("SELECT 1")
        cur.fetchone()


def health_check(conn: Any) -> bool:
    """Return True if *conn* answers a ping."""
    try:
        ping(conn)
        return True
    except psycopg.Error:
        return False
