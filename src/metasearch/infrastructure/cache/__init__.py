"""
Cache Infrastructure

Provides the session-lifetime request cache for provider lookups.
"""

from __future__ import annotations

from metasearch.infrastructure.cache.request_cache import (
    CacheStats,
    RequestCache,
    make_key,
)

__all__ = [
    "CacheStats",
    "RequestCache",
    "make_key",
]
