"""
Logging for SQLRest. Every module calls `get_logger(__name__)`; the first
call attaches one stdout handler to the root logger at LOG_LEVEL so that
uvicorn's loggers and ours share a format.
"""

import logging
import sys
from functools import lru_cache

from sqlrest.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


@lru_cache(maxsize=None)
def _root_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, "%Y-%m-%d %H:%M:%S"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL)
    return handler


def get_logger(name: str) -> logging.Logger:
    _root_handler()
    return logging.getLogger(name)
