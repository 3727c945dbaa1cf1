"""
SQLRest – generic REST access to the tables of a SQLite database.
"""

import asyncio
import os
import signal
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse

from sqlrest import config
from sqlrest.db.connection import ConnectionManager
from sqlrest.errors import register_exception_handlers
from sqlrest.middleware import register_middleware
from sqlrest.routes import ddl, resource
from sqlrest.services.table_access import TableAccess
from sqlrest.utils.logger import get_logger

logger = get_logger(__name__)

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


async def shutdown(app: FastAPI) -> None:
    """Close the shared connection; runs once per application lifetime."""
    if app.state.shut_down:
        return
    app.state.shut_down = True
    logger.info("Shutting down...")
    await app.state.db.close()


BENIGN_LOOP_ERRORS = (asyncio.CancelledError, ConnectionResetError, BrokenPipeError)


def handle_loop_exception(app: FastAPI, loop, context: dict) -> None:
    """
    Treat an unhandled async failure as fatal: log it, flag the app and stop
    the server. Reports without an exception (slow callbacks, transport
    warnings) and dropped client connections go to the default handler.
    """
    exc = context.get("exception")
    if exc is None or isinstance(exc, BENIGN_LOOP_ERRORS):
        loop.default_exception_handler(context)
        return
    logger.critical(f"Unhandled async failure: {context.get('message')}: {exc!r}")
    app.state.fatal_error = True
    os.kill(os.getpid(), signal.SIGTERM)


def _install_fatal_handler(app: FastAPI) -> None:
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(lambda loop, context: handle_loop_exception(app, loop, context))


def create_app(
    db_path: Optional[str] = None,
    query_timeout: Optional[float] = None,
    app_env: Optional[str] = None,
    fatal_on_async_errors: bool = False,
) -> FastAPI:
    env = (app_env or config.APP_ENV).lower()
    production = config.IS_PRODUCTION if app_env is None else env == "production"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: the connection itself is opened lazily on the first query
        if fatal_on_async_errors:
            _install_fatal_handler(app)
        yield
        await shutdown(app)

    app = FastAPI(
        title="SQLRest",
        description="Read, paginate, insert, update and delete rows of any SQLite table over HTTP",
        version="0.1.0",
        lifespan=lifespan,
    )

    manager = ConnectionManager(db_path or config.DB_PATH)
    app.state.db = manager
    app.state.table_access = TableAccess(
        manager, config.QUERY_TIMEOUT if query_timeout is None else query_timeout
    )
    app.state.env = env
    app.state.shut_down = False
    app.state.fatal_error = False

    register_middleware(app)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, production=production)

    # ddl first: its fixed paths must win over /resource/{table}
    app.include_router(ddl.router)
    app.include_router(resource.router)

    @app.get("/")
    async def root():
        return {"message": "SQLRest API", "docs": "/docs", "home": "/home"}

    @app.get("/home", include_in_schema=False)
    async def home():
        return FileResponse(os.path.join(STATIC_DIR, "index.html"), media_type="text/html")

    return app


app = create_app()
