from sqlmodel import Session, SQLModel, create_engine

from dbsecrets.core.config import settings
from dbsecrets.models import StorageEntry  # noqa: F401  (registers the table)


def _connect_args(uri: str) -> dict:
    if uri.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.STORAGE_DATABASE_URI,
    connect_args=_connect_args(settings.STORAGE_DATABASE_URI),
    pool_pre_ping=True,
)


def init_db(session: Session) -> None:
    """Create the storage tables if they do not exist yet."""
    SQLModel.metadata.create_all(session.get_bind())
