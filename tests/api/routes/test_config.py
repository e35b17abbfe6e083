"""Tests for the config/connection API."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from psycopg.conninfo import conninfo_to_dict

from dbsecrets.core.config import settings
from dbsecrets.core.storage import ConfigStore, StorageError
from dbsecrets.core.validator import ConnectionValidationError
from tests.utils.connection_config import make_config


def _url() -> str:
    return f"{settings.API_V1_STR}/config/connection"


# --- write ---


def test_write_connection(
    client: TestClient, store: ConfigStore, invalidate: MagicMock
) -> None:
    response = client.post(
        _url(),
        json={
            "connection_url": "postgresql://vault:secret@db:5432/app",
            "max_open_connections": 5,
            "max_idle_connections": 10,
        },
    )
    assert response.status_code == 204
    assert response.content == b""
    stored = store.get()
    assert stored is not None
    assert stored.connection_url == "postgresql://vault:secret@db:5432/app"
    assert (stored.max_open_connections, stored.max_idle_connections) == (5, 5)
    invalidate.assert_called_once_with()


def test_write_connection_empty_body_uses_defaults(
    client: TestClient, store: ConfigStore, validate: MagicMock
) -> None:
    response = client.post(_url(), json={})
    assert response.status_code == 204
    validate.assert_called_once_with("")
    stored = store.get()
    assert stored is not None
    assert (stored.max_open_connections, stored.max_idle_connections) == (2, 2)


def test_write_connection_legacy_value(client: TestClient, store: ConfigStore) -> None:
    response = client.post(_url(), json={"value": "host=db user=vault"})
    assert response.status_code == 204
    stored = store.get()
    assert stored is not None
    assert stored.connection_string == "host=db user=vault"
    assert stored.dsn == "host=db user=vault"


def test_write_connection_validation_failure(
    client: TestClient,
    store: ConfigStore,
    validate: MagicMock,
    invalidate: MagicMock,
) -> None:
    validate.side_effect = ConnectionValidationError(
        'connection to server at "db" (10.0.0.5), port 5432 failed: Connection refused'
    )
    response = client.post(_url(), json={"connection_url": "postgresql://db/app"})
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert len(errors) == 1
    assert errors[0].startswith("Error validating connection info: ")
    assert "Connection refused" in errors[0]
    assert store.get() is None
    invalidate.assert_not_called()


def test_write_connection_storage_failure(
    client: TestClient, store: ConfigStore, invalidate: MagicMock, monkeypatch
) -> None:
    monkeypatch.setattr(
        store, "put", MagicMock(side_effect=StorageError("database is locked"))
    )
    response = client.post(_url(), json={"connection_url": "postgresql://db/app"})
    assert response.status_code == 500
    assert "database is locked" in response.json()["detail"]
    invalidate.assert_not_called()


def test_write_connection_bad_type(client: TestClient) -> None:
    response = client.post(_url(), json={"max_open_connections": "lots"})
    assert response.status_code == 422
    assert "max_open_connections" in response.json()["detail"]


# --- read ---


def test_read_connection_not_configured(client: TestClient) -> None:
    response = client.get(_url())
    assert response.status_code == 404


def test_read_connection_redacts_passwords(client: TestClient, store: ConfigStore) -> None:
    store.put(
        make_config(
            connection_url="postgresql://vault:secret@db:5432/app",
            connection_string="host=db user=vault password=secret",
            max_open_connections=-1,
            max_idle_connections=-1,
        )
    )
    response = client.get(_url())
    assert response.status_code == 200
    data = response.json()
    assert data["connection_url"] == "postgresql://vault:*****@db:5432/app"
    assert conninfo_to_dict(data["value"]) == {
        "host": "db",
        "user": "vault",
        "password": "*****",
    }
    assert (data["max_open_connections"], data["max_idle_connections"]) == (-1, -1)


def test_write_then_read(client: TestClient) -> None:
    client.post(
        _url(),
        json={"connection_url": "postgresql://vault@db/app", "max_open_connections": 3},
    )
    data = client.get(_url()).json()
    assert data["connection_url"] == "postgresql://vault@db/app"
    assert data["max_open_connections"] == 3
    assert data["max_idle_connections"] == 3


def test_openapi_documents_write_as_no_content(client: TestClient) -> None:
    response = client.get(f"{settings.API_V1_STR}/openapi.json")
    assert response.status_code == 200
    post = response.json()["paths"][_url()]["post"]
    assert "204" in post["responses"]
    assert "400" in post["responses"]
    assert "content" not in post["responses"]["204"]
