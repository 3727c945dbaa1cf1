"""Shared fixtures for the SQLRest test suite."""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from sqlrest.db.connection import ConnectionManager
from sqlrest.main import create_app
from sqlrest.services.table_access import TableAccess

USERS_COLUMNS = "id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT UNIQUE"


@pytest.fixture
def db_path(tmp_path):
    """Database path inside a directory that does not exist yet."""
    return str(tmp_path / "data" / "test.db")


@pytest_asyncio.fixture
async def manager(db_path):
    manager = ConnectionManager(db_path)
    yield manager
    await manager.close()


@pytest.fixture
def access(manager):
    return TableAccess(manager, timeout=5)


@pytest_asyncio.fixture
async def users(access):
    """A `users` table with a unique email column."""
    await access.create_table("users", USERS_COLUMNS)
    return access


async def seed_users(access: TableAccess, count: int) -> None:
    for i in range(1, count + 1):
        await access.create_row("users", {"name": f"user{i}", "email": f"user{i}@example.com"})


@pytest.fixture
def app(db_path):
    return create_app(db_path=db_path, query_timeout=5, app_env="development")


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def users_client(client):
    response = client.post(
        "/resource/ddl/table", json={"tableName": "users", "columns": USERS_COLUMNS}
    )
    assert response.status_code == 200
    return client
