"""
Domain Layer - Core Business Objects

Contains:
- entities: SearchResult, ResultGroup, EngineDescriptor
"""

from .entities import (
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
]
