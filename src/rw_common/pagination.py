"""Keyset cursor helpers shared by offer and asset listings.

Cursor format: Base64 JSON {"ts": "<created_at ISO>", "id": "<row id>"}.
Rows are ordered by (created_at DESC, id DESC); a page is fetched with
limit + 1 rows to detect has_more without COUNT(*).
"""

import base64
import json
from datetime import datetime

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def clamp_limit(limit: int | None) -> int:
    if not limit or limit < 1:
        return DEFAULT_PAGE_SIZE
    return min(limit, MAX_PAGE_SIZE)


def cursor_encode(created_at: datetime, row_id: str) -> str:
    payload = {"ts": created_at.isoformat(), "id": row_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime | None, str | None]:
    """Decode a cursor -> (created_at, id), or (None, None) if absent or garbled."""
    if not cursor:
        return None, None
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(data["ts"]), str(data["id"])
    except (ValueError, KeyError, TypeError):
        return None, None
