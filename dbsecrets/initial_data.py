"""Create the storage tables before the server starts."""

import logging

from sqlmodel import Session

from dbsecrets.core.db import engine, init_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init() -> None:
    with Session(engine) as session:
        init_db(session)
        session.commit()


def main() -> None:
    logger.info("Creating storage tables")
    init()
    logger.info("Storage tables created")


if __name__ == "__main__":
    main()
