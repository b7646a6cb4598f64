"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

from metasearch.domain.entities import SearchResult
from metasearch.infrastructure.engines.base import Engine
from metasearch.registry import EngineRegistry

# ============================================================
# Fake engine
# ============================================================


class FakeEngine(Engine):
    """In-memory engine with configurable latency, results and failure."""

    def __init__(
        self,
        engine_id: str,
        name: str | None = None,
        *,
        results: Iterable[SearchResult] = (),
        results_for: Callable[[str], list[SearchResult]] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
        capabilities: Iterable[str] = (),
        initialize: bool = True,
    ) -> None:
        super().__init__()
        self.id = engine_id
        self.name = name or engine_id.title()
        self.capabilities = frozenset(capabilities)
        self._results = list(results)
        self._results_for = results_for
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.credentials: dict[str, Any] = {}
        if initialize:
            self.init()

    def _configure(self, **credentials: Any) -> None:
        self.credentials = credentials

    async def _search(self, query: str, options: dict[str, Any]) -> list[SearchResult]:
        self.calls.append((query, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self._results_for is not None:
            return self._results_for(query)
        return [r.copy() for r in self._results]


@pytest.fixture
def make_engine():
    """Factory for FakeEngine instances."""
    return FakeEngine


@pytest.fixture
def make_registry():
    """Build a registry from engines."""

    def _create(*engines: Engine) -> EngineRegistry:
        return EngineRegistry(engines)

    return _create


# ============================================================
# Sample data
# ============================================================


@pytest.fixture
def sample_results():
    """Three results in provider order."""
    return [
        SearchResult(title="Login fails on Safari", url="https://jira.example.com/browse/WEB-1", modified=1600000000),
        SearchResult(
            title="Add SSO login",
            url="https://jira.example.com/browse/WEB-2",
            snippet="<p>Support <b>SAML</b> login</p>",
            modified=1700000000,
        ),
        SearchResult(title="Audit log export", url="https://jira.example.com/browse/WEB-3"),
    ]


@pytest.fixture
def jira_issue():
    """Single issue as returned by /rest/api/2/search with renderedFields."""
    return {
        "key": "WEB-42",
        "fields": {
            "summary": "Login button misaligned",
            "updated": "2017-11-20T11:50:25.653-0500",
            "comment": {"comments": [{"body": "raw"}]},
        },
        "renderedFields": {
            "description": "<p>The <em>login</em> button overlaps the logo.</p>",
            "comment": {
                "comments": [
                    {"author": {"displayName": "Ada"}, "body": "<p>Seen on Safari too</p>"},
                ]
            },
        },
    }


# ============================================================
# Environment Fixtures
# ============================================================


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
