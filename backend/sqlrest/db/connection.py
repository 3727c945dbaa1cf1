"""
SQLite connection manager (async via aiosqlite).
Owns the single connection shared by every request: opened lazily on
first use, reused afterwards, closed once on shutdown.
"""

import asyncio
import os
import sqlite3
from typing import Optional

import aiosqlite

from sqlrest.errors import DatabaseConnectionError
from sqlrest.utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    async def ensure(self) -> aiosqlite.Connection:
        """Return the open connection, opening (and creating) the store if needed."""
        if self._db is not None:
            return self._db
        async with self._lock:
            if self._db is None:
                self._db = await self._connect()
        return self._db

    async def _connect(self) -> aiosqlite.Connection:
        db = None
        try:
            directory = os.path.dirname(self.db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            # autocommit: every statement is its own transaction
            db = await aiosqlite.connect(self.db_path, isolation_level=None)
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys=ON")
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to open database at {self.db_path}: {e}")
            if db is not None:
                await db.close()
            raise DatabaseConnectionError(detail=str(e)) from e
        logger.info(f"Connected to SQLite database at {self.db_path}")
        return db

    async def close(self) -> None:
        if self._db is None:
            return
        db, self._db = self._db, None
        await db.close()
        logger.info("Database connection closed")
