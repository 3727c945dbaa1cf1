"""
Process entry point: `sqlrest` (console script) or `python -m sqlrest.server`.

uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which closes the
database connection. A fatal async failure ends the process with status 1.
"""

import sys

import uvicorn

from sqlrest import config
from sqlrest.main import create_app
from sqlrest.utils.logger import get_logger

logger = get_logger(__name__)


def main() -> None:
    app = create_app(fatal_on_async_errors=True)
    logger.info(f"Server running on port {config.PORT} ({config.APP_ENV})")
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_config=None)
    if app.state.fatal_error:
        sys.exit(1)


if __name__ == "__main__":
    main()
