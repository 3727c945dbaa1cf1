"""
Error taxonomy for the table API and the FastAPI handlers that turn
each error into the JSON error envelope.

Envelope: {"status": "error", "message": ...} plus "detail" and "trace"
when not running in production.
"""

import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sqlrest.utils.logger import get_logger

logger = get_logger(__name__)


class SQLRestError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class BadRequest(SQLRestError):
    status_code = 400
    default_message = "Bad request"


class NotFound(SQLRestError):
    status_code = 404
    default_message = "Row not found"


class NoSuchTable(SQLRestError):
    status_code = 404
    default_message = "Table does not exist"


class UniqueConstraintViolation(SQLRestError):
    status_code = 409
    default_message = "A row with this value already exists"


class QueryTimeout(SQLRestError):
    status_code = 408
    default_message = "The query exceeded the time limit"


class ExecutionError(SQLRestError):
    status_code = 500
    default_message = "Query execution failed"


class DatabaseConnectionError(SQLRestError):
    status_code = 500
    default_message = "Failed to connect to the database"


def _error_body(message: str, exc: BaseException, detail: Optional[str], expose: bool) -> dict:
    body = {"status": "error", "message": message}
    if expose:
        body["detail"] = detail if detail is not None else str(exc)
        body["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return body


def register_exception_handlers(app: FastAPI, production: bool) -> None:
    """Attach the error-envelope handlers to `app`."""
    expose = not production

    @app.exception_handler(SQLRestError)
    async def handle_sqlrest_error(request: Request, exc: SQLRestError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc, exc.detail, expose),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        body = {"status": "error", "message": "Bad request. Invalid or missing request data"}
        if expose:
            body["detail"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = "Endpoint not found"
        elif exc.status_code == 405:
            message = "Method not allowed"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", exc, None, expose),
        )
