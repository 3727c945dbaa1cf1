"""
Result container returned by every statement run through the table access layer.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class QueryResult:
    rows: list[dict] = field(default_factory=list)
    last_row_id: Optional[int] = None
    row_count: int = -1
