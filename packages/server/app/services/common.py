"""
Helpers shared by the resource services: paging, search and payload mapping.

Lists are keyset-paginated on a timestamp column. The cursor is the ISO
timestamp of the last row returned; the next page holds rows strictly past it
in the requested direction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

LIKE_ESCAPE = "\\"


@dataclass
class PageParams:
    """Common list parameters, already parsed from the query string."""

    q: Optional[str] = None
    sort: str = "created_at.desc"
    after: Optional[datetime] = None
    limit: int = DEFAULT_LIMIT

    @property
    def descending(self) -> bool:
        return self.sort.lower().endswith(".desc")

    @property
    def bounded_limit(self) -> int:
        return max(1, min(self.limit, MAX_LIMIT))


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_pattern(term: str) -> str:
    return f"%{escape_like(term.strip())}%"


def apply_page(stmt, column, page: PageParams):
    """Add cursor, ordering and limit for ``column`` to a select."""
    if page.after is not None:
        stmt = stmt.where(column < page.after if page.descending else column > page.after)
    order = column.desc() if page.descending else column.asc()
    return stmt.order_by(order).limit(page.bounded_limit)


def next_cursor(rows: Sequence[Any], attr: str, page: PageParams) -> Optional[str]:
    """Cursor for the following page, or None when this page is the last."""
    if len(rows) < page.bounded_limit:
        return None
    value = getattr(rows[-1], attr, None)
    return value.isoformat() if value is not None else None


def column_values(payload: BaseModel, *, exclude_unset: bool = False) -> dict[str, Any]:
    """Model fields as plain column values (enums unwrapped)."""
    data = payload.model_dump(exclude_unset=exclude_unset)
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


UNIQUE_VIOLATION = "23505"


def integrity_error_to_http(exc: IntegrityError, conflict_detail: str) -> HTTPException:
    """409 for duplicate keys, 400 for any other constraint violation."""
    if getattr(exc.orig, "sqlstate", None) == UNIQUE_VIOLATION:
        return HTTPException(status_code=409, detail=conflict_detail)
    return HTTPException(status_code=400, detail="Request violates a data constraint")
