"""
Domain Entities

Core business objects for federated search.
"""

from __future__ import annotations

from .result import (
    SUPPORTS_COMMENTS,
    VERBOSE_SNIPPET,
    Comment,
    EngineDescriptor,
    ResultGroup,
    SearchResult,
)

__all__ = [
    "SearchResult",
    "ResultGroup",
    "EngineDescriptor",
    "Comment",
    "SUPPORTS_COMMENTS",
    "VERBOSE_SNIPPET",
]
