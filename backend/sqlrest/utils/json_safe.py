"""
Make SQLite row values safe for a JSON response.
"""

import base64
from typing import Any


def json_safe_value(value: Any) -> Any:
    """BLOB columns come back as bytes; encode them as base64 text."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def json_safe_row(row) -> dict:
    return {key: json_safe_value(row[key]) for key in row.keys()}
