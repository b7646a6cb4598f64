"""
Tests for QueryCoordinator - fan-out, epochs, partial failure, publishing.

Covers:
1. Query normalization and blank-input no-op
2. Completion-order publishing
3. Stale-result suppression across superseded queries
4. Partial failure (one engine fails, siblings publish)
5. Request deduplication through the cache
6. Relevance assignment, highlighting, views
"""

import asyncio
import logging

import pytest

from metasearch.application.search import QueryCoordinator, SortMode, normalize_query
from metasearch.domain.entities import SUPPORTS_COMMENTS, SearchResult
from metasearch.infrastructure.cache import RequestCache
from metasearch.shared.exceptions import NetworkError


def _hit(query: str) -> list[SearchResult]:
    return [SearchResult(title=f"hit for {query}", url="https://example.com/1")]


# =============================================================================
# normalize_query
# =============================================================================


class TestNormalizeQuery:
    def test_collapses_whitespace(self):
        assert normalize_query("  login \t  bug\n") == "login bug"

    def test_blank(self):
        assert normalize_query("   ") == ""
        assert normalize_query(None) == ""


# =============================================================================
# submit
# =============================================================================


class TestSubmit:
    @pytest.mark.asyncio
    async def test_blank_query_is_noop(self, make_engine, make_registry):
        engine = make_engine("a", results=[SearchResult(title="x", url="u")])
        coordinator = QueryCoordinator(make_registry(engine))
        await coordinator.search("first")

        assert coordinator.submit("   \n ") is None
        assert coordinator.query == "first"
        assert len(coordinator.result_groups) == 1
        assert len(engine.calls) == 1

    @pytest.mark.asyncio
    async def test_epoch_is_normalized_text(self, make_engine, make_registry):
        engine = make_engine("a")
        coordinator = QueryCoordinator(make_registry(engine))
        await coordinator.search("  login    bug ")
        assert coordinator.query == "login bug"
        assert engine.calls == [("login bug", {})]

    @pytest.mark.asyncio
    async def test_new_query_clears_published_groups(self, make_engine, make_registry):
        fast = make_engine("a", results_for=_hit)
        slow = make_engine("b", results_for=_hit, delay=0.05)
        coordinator = QueryCoordinator(make_registry(fast, slow))
        await coordinator.search("one")
        assert len(coordinator.result_groups) == 2

        pending = coordinator.submit("two")
        assert coordinator.result_groups == ()
        await pending
        assert len(coordinator.result_groups) == 2

    @pytest.mark.asyncio
    async def test_groups_published_in_completion_order(self, make_engine, make_registry):
        a = make_engine("a", "A", results=[SearchResult(title="Alpha", url="https://a/1", modified=100)], delay=0.05)
        b = make_engine("b", "B", results=[SearchResult(title="Beta", url="https://b/1", modified=200)], delay=0.01)
        coordinator = QueryCoordinator(make_registry(a, b))

        groups = await coordinator.search("anything")

        assert [g.engine_id for g in groups] == ["b", "a"]
        rendered = [r.title for g in groups for r in coordinator.view(g.engine_id, SortMode.RECENT)]
        assert rendered == ["Beta", "Alpha"]

    @pytest.mark.asyncio
    async def test_elapsed_time_recorded(self, make_engine, make_registry):
        engine = make_engine("a", delay=0.02)
        coordinator = QueryCoordinator(make_registry(engine))
        (group,) = await coordinator.search("q")
        assert group.elapsed_ms >= 15


# =============================================================================
# Stale results
# =============================================================================


class TestStaleResults:
    @pytest.mark.asyncio
    async def test_superseded_results_never_published(self, make_engine, make_registry):
        engine = make_engine("a", results_for=_hit, delay=0.05)
        coordinator = QueryCoordinator(make_registry(engine), RequestCache())
        snapshots = []
        coordinator.subscribe(lambda groups: snapshots.append(groups))

        first = coordinator.submit("first")
        second = coordinator.submit("second")
        await asyncio.gather(first, second)

        titles = [r.title for g in coordinator.result_groups for r in g.results]
        assert titles == ["hit for <mark>second</mark>"]
        assert coordinator.discarded == 1
        for groups in snapshots:
            assert all("first" not in r.title for g in groups for r in g.results)

    @pytest.mark.asyncio
    async def test_slow_first_query_finishing_last_is_dropped(self, make_engine, make_registry):
        calls = []

        def results_for(query):
            calls.append(query)
            return _hit(query)

        engine = make_engine("a", results_for=results_for, delay=0.05)
        coordinator = QueryCoordinator(make_registry(engine))

        first = coordinator.submit("first")
        await asyncio.sleep(0.01)
        engine.delay = 0
        second = coordinator.submit("second")
        await second
        assert [g.results[0].title for g in coordinator.result_groups] == ["hit for <mark>second</mark>"]

        await first
        assert [g.results[0].title for g in coordinator.result_groups] == ["hit for <mark>second</mark>"]
        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_stale_failure_also_dropped(self, make_engine, make_registry):
        def results_for(query):
            if query == "first":
                raise NetworkError("down")
            return _hit(query)

        engine = make_engine("a", results_for=results_for, delay=0.02)
        coordinator = QueryCoordinator(make_registry(engine))
        first = coordinator.submit("first")
        second = coordinator.submit("second")
        await asyncio.gather(first, second)

        assert len(coordinator.result_groups) == 1
        assert not coordinator.result_groups[0].failed

    @pytest.mark.asyncio
    async def test_refresh_retires_previous_run_of_same_query(self, make_engine, make_registry):
        engine = make_engine("a", results_for=_hit, delay=0.02)
        coordinator = QueryCoordinator(make_registry(engine))

        first = coordinator.submit("same")
        second = coordinator.refresh()
        await asyncio.gather(first, second)

        assert len(coordinator.result_groups) == 1
        assert coordinator.discarded == 1


# =============================================================================
# Partial failure
# =============================================================================


class TestPartialFailure:
    @pytest.mark.asyncio
    async def test_failed_engine_publishes_empty_group(self, make_engine, make_registry):
        a = make_engine("a", error=NetworkError("connection refused", engine_id="a"))
        b = make_engine("b", results=[SearchResult(title="Beta", url="https://b/1")], delay=0.01)
        coordinator = QueryCoordinator(make_registry(a, b))

        groups = await coordinator.search("query")

        assert len(groups) == 2
        non_empty = [g for g in groups if g.results]
        assert [g.engine_id for g in non_empty] == ["b"]
        failed = coordinator.group("a")
        assert failed.num_results == 0
        assert failed.failed
        assert "connection refused" in failed.error

    @pytest.mark.asyncio
    async def test_unexpected_exception_isolated(self, make_engine, make_registry):
        a = make_engine("a", error=RuntimeError("bug in adapter"))
        b = make_engine("b", results=[SearchResult(title="Beta", url="u")])
        coordinator = QueryCoordinator(make_registry(a, b))

        groups = await coordinator.search("query")
        assert {g.engine_id: g.num_results for g in groups} == {"a": 0, "b": 1}

    @pytest.mark.asyncio
    async def test_uninitialized_engine_isolated(self, make_engine, make_registry):
        a = make_engine("a", initialize=False)
        b = make_engine("b", results=[SearchResult(title="Beta", url="u")])
        coordinator = QueryCoordinator(make_registry(a, b))

        groups = await coordinator.search("query")
        assert coordinator.group("a").failed
        assert "not initialized" in coordinator.group("a").error
        assert coordinator.group("b").num_results == 1
        assert len(groups) == 2

    @pytest.mark.asyncio
    async def test_failure_logged(self, make_engine, make_registry, caplog):
        a = make_engine("a", error=NetworkError("timeout"))
        coordinator = QueryCoordinator(make_registry(a))
        with caplog.at_level(logging.WARNING):
            await coordinator.search("query")
        assert "Engine a failed" in caplog.text


# =============================================================================
# Cache interaction
# =============================================================================


class TestCaching:
    @pytest.mark.asyncio
    async def test_identical_concurrent_lookups_call_engine_once(self, make_engine, make_registry):
        engine = make_engine("a", results_for=_hit, delay=0.02)
        cache = RequestCache()
        coordinator = QueryCoordinator(make_registry(engine), cache)

        first = coordinator.submit("same")
        second = coordinator.submit("same")
        await asyncio.gather(first, second)

        assert len(engine.calls) == 1
        assert cache.stats.hits == 1

    @pytest.mark.asyncio
    async def test_repeat_query_highlights_cleanly(self, make_engine, make_registry):
        engine = make_engine("a", results_for=_hit)
        coordinator = QueryCoordinator(make_registry(engine))

        await coordinator.search("login")
        await coordinator.search("login")

        assert coordinator.result_groups[0].results[0].title == "hit for <mark>login</mark>"
        assert len(engine.calls) == 1

    @pytest.mark.asyncio
    async def test_engine_options_passed_and_keyed(self, make_engine, make_registry):
        engine = make_engine("jira", capabilities=[SUPPORTS_COMMENTS])
        options = {"includeComments": False}
        coordinator = QueryCoordinator(make_registry(engine), options_for=lambda d: dict(options))

        await coordinator.search("q")
        options["includeComments"] = True
        await coordinator.search("q")

        assert engine.calls == [("q", {"includeComments": False}), ("q", {"includeComments": True})]

    @pytest.mark.asyncio
    async def test_shared_lookup_survives_cancelled_awaiter(self, make_engine, make_registry):
        engine = make_engine("a", results_for=_hit, delay=0.03)
        cache = RequestCache()
        coordinator = QueryCoordinator(make_registry(engine), cache)

        first = coordinator.submit("q")
        await asyncio.sleep(0)
        first.cancel()
        groups = await coordinator.search("q")

        assert groups[0].num_results == 1
        assert len(engine.calls) == 1


# =============================================================================
# Result preparation and views
# =============================================================================


class TestPublishedResults:
    @pytest.mark.asyncio
    async def test_relevance_is_provider_position(self, make_engine, make_registry, sample_results):
        engine = make_engine("jira", results=sample_results)
        coordinator = QueryCoordinator(make_registry(engine))
        (group,) = await coordinator.search("login")
        assert [r.relevance for r in group.results] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_title_and_snippet_highlighted(self, make_engine, make_registry, sample_results):
        engine = make_engine("jira", results=sample_results)
        coordinator = QueryCoordinator(make_registry(engine))
        (group,) = await coordinator.search("login")

        assert group.results[0].title == "<mark>Login</mark> fails on Safari"
        assert group.results[1].snippet == "<p>Support <b>SAML</b> <mark>login</mark></p>"
        assert group.results[2].title == "Audit log export"
        assert group.results[2].snippet is None

    @pytest.mark.asyncio
    async def test_view_sorts_without_mutating_group(self, make_engine, make_registry, sample_results):
        engine = make_engine("jira", results=sample_results)
        coordinator = QueryCoordinator(make_registry(engine))
        await coordinator.search("log")

        recent = coordinator.view("jira", SortMode.RECENT)
        assert [r.modified for r in recent] == [1700000000, 1600000000, None]
        assert [r.relevance for r in coordinator.group("jira").results] == [0, 1, 2]
        assert coordinator.view("missing") == []

    @pytest.mark.asyncio
    async def test_engine_status(self, make_engine, make_registry):
        slow = make_engine("a", results=[SearchResult(title="x", url="u")], delay=0.02)
        empty = make_engine("b")
        coordinator = QueryCoordinator(make_registry(slow, empty))

        pending = coordinator.submit("q")
        assert coordinator.engine_status("a") is None
        await pending
        assert coordinator.engine_status("a") == 1
        assert coordinator.engine_status("b") == 0

    @pytest.mark.asyncio
    async def test_non_empty_groups_respects_hidden(self, make_engine, make_registry):
        a = make_engine("a", results=[SearchResult(title="x", url="u")])
        b = make_engine("b", results=[SearchResult(title="y", url="u")])
        c = make_engine("c")
        coordinator = QueryCoordinator(make_registry(a, b, c))
        await coordinator.search("q")

        assert {g.engine_id for g in coordinator.non_empty_groups()} == {"a", "b"}
        assert [g.engine_id for g in coordinator.non_empty_groups(hidden=["a"])] == ["b"]


# =============================================================================
# Observers
# =============================================================================


class TestObservers:
    @pytest.mark.asyncio
    async def test_notified_on_clear_and_each_publish(self, make_engine, make_registry):
        a = make_engine("a", delay=0.01)
        b = make_engine("b", delay=0.02)
        coordinator = QueryCoordinator(make_registry(a, b))
        seen = []
        coordinator.subscribe(lambda groups: seen.append([g.engine_id for g in groups]))

        await coordinator.search("q")
        assert seen == [[], ["a"], ["a", "b"]]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, make_engine, make_registry):
        coordinator = QueryCoordinator(make_registry(make_engine("a")))
        seen = []
        unsubscribe = coordinator.subscribe(seen.append)
        unsubscribe()
        await coordinator.search("q")
        assert seen == []

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_break_search(self, make_engine, make_registry, caplog):
        coordinator = QueryCoordinator(make_registry(make_engine("a", results_for=_hit)))

        def broken(groups):
            raise ValueError("render failed")

        coordinator.subscribe(broken)
        with caplog.at_level(logging.ERROR):
            groups = await coordinator.search("q")
        assert groups[0].num_results == 1
        assert "Observer" in caplog.text


@pytest.mark.asyncio
async def test_no_engines(make_registry):
    coordinator = QueryCoordinator(make_registry())
    assert await coordinator.search("q") == ()
    assert coordinator.query == "q"
