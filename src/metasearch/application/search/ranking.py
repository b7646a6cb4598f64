"""
Result ordering policies.

Three named sort modes over one provider's result list:

- ``best``:   ascending by relevance (provider order); missing last
- ``recent``: newest first by modified time; missing last
- ``az``:     plain code-point order on the title

Every policy is a stable sort, so ties keep the provider's arrival order.
Sorting produces a new list; the published ResultGroup is never reordered.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from metasearch.domain.entities import SearchResult
from metasearch.shared.exceptions import ConfigurationError, ErrorContext


class SortMode(str, Enum):
    """Named sort policies, valued by their persisted identifiers."""

    BEST = "best"
    RECENT = "recent"
    AZ = "az"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: str | SortMode | None) -> SortMode:
        """Parse a persisted identifier; None means the default."""
        if value is None:
            return DEFAULT_SORT_MODE
        if isinstance(value, SortMode):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Unknown sort mode: {value!r}",
                context=ErrorContext(
                    input_value=value,
                    suggestion=f"Use one of: {', '.join(m.value for m in SORT_MODE_ORDER)}",
                ),
            ) from None


_DISPLAY_NAMES = {
    SortMode.BEST: "Best",
    SortMode.RECENT: "Recent",
    SortMode.AZ: "A-Z",
}

DEFAULT_SORT_MODE = SortMode.BEST

# Order in which the modes are offered to the user
SORT_MODE_ORDER: tuple[SortMode, ...] = (SortMode.BEST, SortMode.RECENT, SortMode.AZ)


def _best_key(result: SearchResult) -> tuple[bool, int]:
    return (result.relevance is None, result.relevance or 0)


def _recent_key(result: SearchResult) -> tuple[bool, int]:
    return (result.modified is None, -(result.modified or 0))


def _az_key(result: SearchResult) -> str:
    return result.title


_SORT_KEYS: dict[SortMode, Callable[[SearchResult], Any]] = {
    SortMode.BEST: _best_key,
    SortMode.RECENT: _recent_key,
    SortMode.AZ: _az_key,
}


def sort_results(results: Iterable[SearchResult], mode: SortMode | str = DEFAULT_SORT_MODE) -> list[SearchResult]:
    """Return a new list of results ordered by the given sort mode."""
    return sorted(results, key=_SORT_KEYS[SortMode.parse(mode)])
