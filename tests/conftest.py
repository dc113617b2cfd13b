import pytest

from vaultstore import JsonFileStore, MemoryStore, SqliteStore
from vaultweb import create_app
from vaultweb import config

# RFC 4226 / RFC 6238 test key "12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture
def rfc_secret():
    return RFC_SECRET_B32


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    if request.param == "json":
        return JsonFileStore(str(tmp_path / "vault.json"))
    return SqliteStore(str(tmp_path / "db" / "vault.db"))


@pytest.fixture
def app(memory_store):
    return create_app(config.TestConfig, store=memory_store)


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, username="alice", password="pw123456", email="alice@example.com"):
    return client.post(
        "/api/auth/register",
        json={
            "username": username,
            "password": password,
            "confirm_password": password,
            "email": email,
        },
    )


@pytest.fixture
def logged_in_client(client):
    response = register(client)
    assert response.status_code == 201
    return client
