"""
Generic table access – turns a table name plus request data into a
parameterized SQL statement, runs it on the shared connection under a
timeout and classifies backend failures into API errors.

Table and column names cannot be bound as parameters, so they are
checked against IDENTIFIER_RE before being written into the SQL text.
"""

import asyncio
import re
import sqlite3
from typing import Any, Optional

import aiosqlite

from sqlrest.config import DEFAULT_LIST_LIMIT, QUERY_TIMEOUT
from sqlrest.db.connection import ConnectionManager
from sqlrest.db.models import QueryResult
from sqlrest.errors import (
    BadRequest,
    ExecutionError,
    NoSuchTable,
    NotFound,
    QueryTimeout,
    SQLRestError,
    UniqueConstraintViolation,
)
from sqlrest.utils.json_safe import json_safe_row
from sqlrest.utils.logger import get_logger

logger = get_logger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# statement separators and comments; everything else is left to SQLite to judge
UNSAFE_SQL_RE = re.compile(r";|--|/\*")
UNIQUE_RE = re.compile(r"UNIQUE constraint failed: ([\w.]+(?:, [\w.]+)*)")

SCALAR_TYPES = (str, int, float, bool, type(None))
SQLITE_MAX_INT = 2**63 - 1


def validate_identifier(name: Any, kind: str = "table") -> str:
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise BadRequest(f"Bad request. Invalid {kind} name: {name!r}")
    return name


def parse_positive_int(value: Any, name: str) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise BadRequest("Bad request. Missing page or limit parameter")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"Bad request. '{name}' must be a positive integer")
    if number < 1 or number > SQLITE_MAX_INT:
        raise BadRequest(f"Bad request. '{name}' must be a positive integer")
    return number


def classify_backend_error(error: sqlite3.Error) -> SQLRestError:
    """Map a raw SQLite error onto the API error it represents."""
    message = str(error)
    if "no such table" in message:
        return NoSuchTable(
            message.replace("no such table:", "Table does not exist:").strip(),
            detail=message,
        )
    match = UNIQUE_RE.search(message)
    if match:
        columns = [col.split(".")[-1] for col in match.group(1).split(", ")]
        return UniqueConstraintViolation(
            f"A row with this {', '.join(columns)} already exists", detail=message
        )
    return ExecutionError(detail=message)


def _columns_and_values(body: Any) -> tuple[list[str], list[Any]]:
    if not isinstance(body, dict) or not body:
        raise BadRequest("Bad request. The body must be a JSON object with at least one column")
    columns, values = [], []
    for key, value in body.items():
        columns.append(validate_identifier(key, "column"))
        if not isinstance(value, SCALAR_TYPES):
            raise BadRequest(f"Bad request. Column '{key}' must hold a scalar value")
        values.append(value)
    return columns, values


def _log_abandoned(task: asyncio.Task) -> None:
    """Surface what a statement nobody waits for anymore eventually did."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Abandoned statement later failed: {exc}")
    else:
        logger.info("Abandoned statement completed in the background")


class TableAccess:
    """Schema-agnostic CRUD and DDL over the shared SQLite connection."""

    def __init__(self, manager: ConnectionManager, timeout: Optional[float] = None):
        self.manager = manager
        self.timeout = QUERY_TIMEOUT if timeout is None else timeout

    # ── Execution ─────────────────────────────────────────

    async def execute(
        self, sql: str, params: tuple = (), timeout: Optional[float] = None
    ) -> QueryResult:
        """
        Run one statement on the shared connection.

        The statement runs in its own task and the caller waits on a shielded
        view of it: on timeout the caller gets QueryTimeout while the statement
        is left to finish (or fail) on its own. A timed-out write may still
        land in the store.
        """
        db = await self.manager.ensure()
        limit = self.timeout if timeout is None else timeout

        task = asyncio.ensure_future(self._run(db, sql, params))
        try:
            return await asyncio.wait_for(asyncio.shield(task), limit)
        except asyncio.TimeoutError:
            logger.warning(f"Query timed out after {limit:g}s: {sql}")
            raise QueryTimeout(
                f"The query exceeded the time limit of {limit:g} seconds"
            ) from None
        except sqlite3.Error as e:
            logger.warning(f"Query failed: {sql} -> {e}")
            raise classify_backend_error(e) from e
        except OverflowError as e:
            # integers beyond 64 bits cannot be bound
            logger.warning(f"Query failed: {sql} -> {e}")
            raise ExecutionError(detail=str(e)) from e
        finally:
            # timed out or cancelled: keep the outcome from going unretrieved
            if not task.done():
                task.add_done_callback(_log_abandoned)

    @staticmethod
    async def _run(db: aiosqlite.Connection, sql: str, params: tuple) -> QueryResult:
        cursor = await db.execute(sql, params)
        try:
            rows = await cursor.fetchall()
            return QueryResult(
                rows=[json_safe_row(row) for row in rows],
                last_row_id=cursor.lastrowid,
                row_count=cursor.rowcount,
            )
        finally:
            await cursor.close()

    # ── Rows ──────────────────────────────────────────────

    async def list_rows(self, table: str) -> list[dict]:
        table = validate_identifier(table)
        result = await self.execute(f"SELECT * FROM {table} LIMIT {DEFAULT_LIST_LIMIT}")
        return result.rows

    async def get_row(self, table: str, row_id: Any) -> dict:
        table = validate_identifier(table)
        result = await self.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
        if not result.rows:
            raise NotFound(f"Row '{row_id}' not found in table '{table}'")
        return result.rows[0]

    async def paginate(self, table: str, page: Any, limit: Any) -> list[dict]:
        table = validate_identifier(table)
        page_number = parse_positive_int(page, "page")
        limit_number = parse_positive_int(limit, "limit")
        offset = (page_number - 1) * limit_number
        if offset > SQLITE_MAX_INT:
            raise BadRequest("Bad request. page is beyond the last possible row")

        result = await self.execute(
            f"SELECT * FROM {table} LIMIT ? OFFSET ?", (limit_number, offset)
        )
        return result.rows

    async def create_row(self, table: str, body: Any) -> Optional[int]:
        """Insert one row and return its generated id."""
        table = validate_identifier(table)
        columns, values = _columns_and_values(body)
        placeholders = ", ".join("?" for _ in columns)

        result = await self.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            tuple(values),
        )
        logger.info(f"Inserted row #{result.last_row_id} into {table}")
        return result.last_row_id

    async def update_row(self, table: str, row_id: Any, body: Any) -> int:
        """Update the row with `row_id` and return the number of rows changed."""
        table = validate_identifier(table)
        columns, values = _columns_and_values(body)
        assignments = ", ".join(f"{col} = ?" for col in columns)

        result = await self.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            tuple(values) + (row_id,),
        )
        return result.row_count

    async def delete_row(self, table: str, row_id: Any) -> int:
        # check-then-delete is not atomic: a concurrent delete may win the race
        table = validate_identifier(table)
        found = await self.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
        if not found.rows:
            raise NotFound(f"Row '{row_id}' not found in table '{table}'")

        result = await self.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        logger.info(f"Deleted row '{row_id}' from {table}")
        return result.row_count

    # ── DDL ───────────────────────────────────────────────

    async def create_table(self, table_name: Optional[str], columns: Optional[str]) -> None:
        if not table_name or not isinstance(columns, str) or not columns.strip():
            raise BadRequest("Bad request. tableName and columns are required")
        table_name = validate_identifier(table_name)
        if UNSAFE_SQL_RE.search(columns):
            raise BadRequest("Bad request. columns must be a single column definition list")

        try:
            await self.execute(f"CREATE TABLE IF NOT EXISTS {table_name} ({columns})")
        except (ExecutionError, NoSuchTable, UniqueConstraintViolation) as e:
            raise ExecutionError(
                f"Failed to create table '{table_name}'", detail=e.detail
            ) from e
        logger.info(f"Created table {table_name}")

    async def add_column(
        self, table: str, column_name: Optional[str], column_type: Optional[str]
    ) -> None:
        if not column_name or not column_type:
            raise BadRequest("Bad request. columnName and columnType are required")
        table = validate_identifier(table)
        column_name = validate_identifier(column_name, "column")
        if not isinstance(column_type, str) or UNSAFE_SQL_RE.search(column_type):
            raise BadRequest(f"Bad request. Invalid column type: {column_type!r}")

        try:
            await self.execute(
                f"ALTER TABLE {table} ADD COLUMN {column_name} {column_type.strip()}"
            )
        except ExecutionError as e:
            raise ExecutionError(
                f"Failed to add column '{column_name}'", detail=e.detail
            ) from e
        logger.info(f"Added column {column_name} to {table}")
