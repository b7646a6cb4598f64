"""
Metasearch - one query, every search engine at once.

A federated search library: a query is fanned out to every configured
engine (issue trackers, wikis, code hosts, ...), results stream back per
engine, are highlighted, and can be re-ordered under several sort modes.

Usage:
    from metasearch import EngineRegistry, QueryCoordinator
    from metasearch.infrastructure.engines import JiraEngine

    jira = JiraEngine()
    jira.init(origin="https://jira.example.com", user="bot", token="...")

    coordinator = QueryCoordinator(EngineRegistry([jira]))
    groups = await coordinator.search("login bug")

Features:
    - Concurrent fan-out with partial-failure tolerance
    - Stale-result suppression when a newer query supersedes an older one
    - Session-lifetime request cache with in-flight sharing
    - Markup-safe highlighting of query matches
    - best / recent / A-Z sort modes
"""

from .application.search import QueryCoordinator, SortMode, sort_results
from .domain import EngineDescriptor, ResultGroup, SearchResult
from .infrastructure.cache import RequestCache
from .registry import EngineRegistry

__version__ = "0.1.0"

__all__ = [
    "QueryCoordinator",
    "SortMode",
    "sort_results",
    "EngineRegistry",
    "RequestCache",
    "SearchResult",
    "ResultGroup",
    "EngineDescriptor",
]
