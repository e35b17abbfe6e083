from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from dbsecrets.core.connection_config import (
    ConnectionConfigService,
    get_connection_config_service,
)
from dbsecrets.core.storage import ConfigStore
from dbsecrets.main import app


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory storage database, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine: Engine) -> ConfigStore:
    return ConfigStore(engine)


@pytest.fixture
def validate() -> MagicMock:
    return MagicMock(return_value=None)


@pytest.fixture
def invalidate() -> MagicMock:
    return MagicMock(return_value=None)


@pytest.fixture
def service(
    store: ConfigStore, invalidate: MagicMock, validate: MagicMock
) -> ConnectionConfigService:
    return ConnectionConfigService(store, invalidate, validate=validate)


@pytest.fixture
def client(service: ConnectionConfigService) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_connection_config_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
