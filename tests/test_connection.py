"""Tests for the lazily-opened shared SQLite connection."""

import asyncio
import os

import pytest

from sqlrest.db.connection import ConnectionManager
from sqlrest.errors import DatabaseConnectionError


@pytest.mark.asyncio
async def test_ensure_creates_store_and_is_idempotent(manager, db_path):
    assert not manager.is_connected
    assert not os.path.exists(db_path)

    first = await manager.ensure()
    second = await manager.ensure()

    assert first is second
    assert manager.is_connected
    assert os.path.exists(db_path)


@pytest.mark.asyncio
async def test_concurrent_first_calls_open_one_connection(manager):
    connections = await asyncio.gather(*(manager.ensure() for _ in range(5)))
    assert all(conn is connections[0] for conn in connections)


@pytest.mark.asyncio
async def test_close_is_safe_to_repeat(manager):
    await manager.close()  # never opened
    await manager.ensure()
    await manager.close()
    await manager.close()
    assert not manager.is_connected


@pytest.mark.asyncio
async def test_reconnects_after_close(manager):
    first = await manager.ensure()
    await manager.close()
    second = await manager.ensure()
    assert second is not first


@pytest.mark.asyncio
async def test_ensure_fails_when_store_cannot_be_opened(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    manager = ConnectionManager(str(blocker / "test.db"))

    with pytest.raises(DatabaseConnectionError) as exc_info:
        await manager.ensure()

    assert exc_info.value.status_code == 500
    assert not manager.is_connected
