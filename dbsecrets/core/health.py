"""
Readiness checks: storage database, plus Redis when REDIS_ENABLED.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from dbsecrets.core.config import settings
from dbsecrets.core.db import engine
from dbsecrets.core.redis_client import ping as redis_ping

logger = logging.getLogger(__name__)


def check_storage() -> bool:
    """Check the storage database by running SELECT 1. Returns True if ok."""
    try:
        with Session(engine) as session:
            session.exec(select(1)).first()
        return True
    except SQLAlchemyError:
        logger.warning("Storage check failed", exc_info=True)
        return False


def check_redis() -> bool:
    """Check Redis by PING via the shared client."""
    return redis_ping()


def readiness_check() -> tuple[bool, list[str]]:
    """
    Run storage + (optionally) Redis checks.
    Returns (ok, list of failure messages).
    """
    failures: list[str] = []

    if not check_storage():
        failures.append("storage")

    if settings.REDIS_ENABLED and not check_redis():
        failures.append("redis")

    return (len(failures) == 0, failures)
