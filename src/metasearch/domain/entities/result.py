"""
Search Result Entities - common result schema shared by all engines.

Key Entities:
    - SearchResult: one hit from one provider
    - ResultGroup: one provider's results for one query epoch
    - EngineDescriptor: static catalog entry for a provider

Wire shape (JSON, as served by ``GET /api/search``):
    {"title": "...", "url": "...", "snippet": "...", "modified": 1593668572}

Optional fields are omitted rather than serialized as null.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

# Capability flags
SUPPORTS_COMMENTS = "supports-comments"
VERBOSE_SNIPPET = "verbose-snippet"


@dataclass(frozen=True)
class EngineDescriptor:
    """Immutable description of a registered provider."""

    id: str
    name: str
    capabilities: frozenset[str] = field(default_factory=frozenset)

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "capabilities": sorted(self.capabilities),
        }


@dataclass(frozen=True)
class Comment:
    """An issue comment attached to a result (Jira with comments enabled)."""

    author: str
    body: str


@dataclass
class SearchResult:
    """
    A single search hit in the common schema.

    ``title`` and ``snippet`` are HTML-safe fragments. ``relevance`` is the
    position within the provider's own response (lower is better) and is
    assigned by the coordinator, never by the provider.
    """

    title: str
    url: str
    snippet: str | None = None
    modified: int | None = None  # Unix seconds
    relevance: int | None = None
    comments: list[Comment] | None = None

    def copy(self, **changes: Any) -> SearchResult:
        """Return a shallow copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchResult:
        comments = data.get("comments")
        return cls(
            title=data.get("title") or "",
            url=data.get("url") or "",
            snippet=data.get("snippet") or None,
            modified=int(data["modified"]) if data.get("modified") is not None else None,
            relevance=data.get("relevance"),
            comments=(
                [Comment(author=c.get("author", ""), body=c.get("body", "")) for c in comments]
                if comments is not None
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "url": self.url}
        if self.snippet is not None:
            data["snippet"] = self.snippet
        if self.modified is not None:
            data["modified"] = self.modified
        if self.relevance is not None:
            data["relevance"] = self.relevance
        if self.comments is not None:
            data["comments"] = [{"author": c.author, "body": c.body} for c in self.comments]
        return data


@dataclass(frozen=True)
class ResultGroup:
    """
    One provider's outcome for one query epoch.

    A failed lookup is still a group: zero results, ``error`` recorded for
    the logs. The UI treats it exactly like "no results found".
    """

    engine_id: str
    elapsed_ms: float
    results: tuple[SearchResult, ...] = ()
    error: str | None = None

    @property
    def num_results(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> bool:
        return self.error is not None
