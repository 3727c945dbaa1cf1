"""
Runtime configuration – loaded from the environment (and a .env file if present).
"""

import os
from dotenv import load_dotenv

load_dotenv()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "4000"))
DB_PATH = os.getenv("DB_PATH", os.path.join("database", "database.db"))
QUERY_TIMEOUT = float(os.getenv("QUERY_TIMEOUT", "180"))  # seconds
APP_ENV = os.getenv("APP_ENV", "development").lower()
IS_PRODUCTION = APP_ENV == "production"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_raw_origins = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: list[str] = (
    [o.strip() for o in _raw_origins.split(",") if o.strip()]
    if _raw_origins
    else ["http://localhost:4000", "http://127.0.0.1:4000"]
)

DEFAULT_LIST_LIMIT = 10
