"""
Search Application Module - query fan-out and reconciliation.

Components:
- QueryCoordinator: epoch-tracked fan-out to every engine
- Highlighter: <mark> wrapping of query matches in HTML text nodes
- Ranking: best / recent / az sort policies
"""

from .coordinator import QueryCoordinator, QueryEpoch, normalize_query
from .highlighter import build_highlight_pattern, highlight
from .ranking import DEFAULT_SORT_MODE, SORT_MODE_ORDER, SortMode, sort_results

__all__ = [
    "QueryCoordinator",
    "QueryEpoch",
    "normalize_query",
    "build_highlight_pattern",
    "highlight",
    "SortMode",
    "SORT_MODE_ORDER",
    "DEFAULT_SORT_MODE",
    "sort_results",
]
