"""Helpers shared by engine adapters."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any
from urllib.parse import quote


def escape_quotes(text: str) -> str:
    """Escape double quotes for embedding in a quoted query phrase."""
    return text.replace('"', '\\"')


def get_unix_time(timestamp: str) -> int:
    """
    Convert an ISO 8601 timestamp to Unix seconds.

    Accepts the Jira flavour with a compact offset, e.g.
    "2017-11-20T11:50:25.653-0500".
    """
    try:
        parsed = datetime.strptime(timestamp, "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError:
        parsed = datetime.fromisoformat(timestamp)
    return int(parsed.timestamp())


def querify(params: dict[str, Any] | None = None, *, now_ms: int | None = None) -> str:
    """
    Build a query string with sorted keys and a cache-busting ``_`` param.

    Booleans are sent as "true"/"false". The server ignores ``_``.
    """
    items = dict(params or {})
    items["_"] = now_ms if now_ms is not None else int(time.time() * 1000)
    parts = []
    for key, value in sorted(items.items()):
        if isinstance(value, bool):
            value = "true" if value else "false"
        parts.append(f"{quote(str(key), safe='')}={quote(str(value), safe='')}")
    return "&".join(parts)
