"""
Query Coordinator - fans one query out to every registered engine.

Flow for ``submit("login  bug")``:

    1. Normalize whitespace -> "login bug"; blank input is a no-op
    2. Open a new epoch and clear the published result groups
    3. Launch one task per engine (registry order) through the RequestCache
    4. Each task, on completion, compares its epoch with the live epoch:
         - superseded -> drop silently (StaleResultDiscarded, logged)
         - current    -> assign relevance, highlight, publish a ResultGroup
    5. Observers are notified after every publish

Groups are published in completion order, not launch order. A failing
engine publishes an empty group and never disturbs its siblings. There is
no true cancellation: a superseded lookup keeps running, only its effect
on published state is suppressed.

All state is mutated from the event loop thread only, so no locks are
needed.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from metasearch.application.search.highlighter import (
    build_highlight_pattern,
    highlight,
    highlight_optional,
)
from metasearch.application.search.ranking import DEFAULT_SORT_MODE, SortMode, sort_results
from metasearch.domain.entities import EngineDescriptor, ResultGroup, SearchResult
from metasearch.infrastructure.cache import RequestCache
from metasearch.registry import EngineRegistry
from metasearch.shared.async_utils import gather_settled
from metasearch.shared.exceptions import StaleResultDiscarded

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

Observer = Callable[[tuple[ResultGroup, ...]], None]
OptionsProvider = Callable[[EngineDescriptor], dict[str, Any]]


def normalize_query(text: str | None) -> str:
    """Trim and collapse whitespace runs to a single space."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


@dataclass(frozen=True)
class QueryEpoch:
    """
    Token for the query currently of interest.

    Compared by value. The serial distinguishes two submissions of the
    same text, so re-running a query also retires the previous run.
    """

    query: str
    serial: int


def _no_options(descriptor: EngineDescriptor) -> dict[str, Any]:
    return {}


class QueryCoordinator:
    """
    Orchestrates provider fan-out and result reconciliation.

    Example:
        coordinator = QueryCoordinator(registry, RequestCache())
        coordinator.subscribe(lambda groups: render(groups))
        await coordinator.search("login bug")
        for result in coordinator.view("jira", SortMode.RECENT):
            ...
    """

    def __init__(
        self,
        registry: EngineRegistry,
        cache: RequestCache | None = None,
        *,
        options_for: OptionsProvider | None = None,
    ) -> None:
        self._registry = registry
        self._cache = cache if cache is not None else RequestCache()
        self._options_for = options_for or _no_options
        self._serials = itertools.count(1)
        self._epoch: QueryEpoch | None = None
        self._groups: list[ResultGroup] = []
        self._observers: list[Observer] = []
        self.discarded = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def epoch(self) -> QueryEpoch | None:
        return self._epoch

    @property
    def query(self) -> str | None:
        """Canonical text of the current epoch."""
        return self._epoch.query if self._epoch else None

    @property
    def result_groups(self) -> tuple[ResultGroup, ...]:
        """Published groups in completion order."""
        return tuple(self._groups)

    @property
    def cache(self) -> RequestCache:
        return self._cache

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def submit(self, text: str | None) -> asyncio.Future[list[Any]] | None:
        """
        Start a new query epoch and launch one lookup per engine.

        Must be called from the running event loop. Returns a future that
        settles once every engine task has finished (successfully or not),
        or None when the text is blank.
        """
        query = normalize_query(text)
        if not query:
            return None

        epoch = QueryEpoch(query=query, serial=next(self._serials))
        self._epoch = epoch
        self._groups = []
        logger.info(f"Query #{epoch.serial}: {query!r} -> {len(self._registry)} engines")
        self._notify()

        tasks = [
            asyncio.ensure_future(self._run_engine(descriptor, epoch))
            for descriptor in self._registry.list()
        ]
        return asyncio.ensure_future(gather_settled(*tasks))

    def refresh(self) -> asyncio.Future[list[Any]] | None:
        """Re-run the current query, e.g. after engine options changed."""
        return self.submit(self.query)

    async def search(self, text: str | None) -> tuple[ResultGroup, ...]:
        """Submit a query and wait for every engine to settle."""
        pending = self.submit(text)
        if pending is not None:
            await pending
        return self.result_groups

    async def _run_engine(self, descriptor: EngineDescriptor, epoch: QueryEpoch) -> ResultGroup | None:
        start = time.perf_counter()
        error: str | None = None

        try:
            options = self._options_for(descriptor)
            engine = self._registry.engine(descriptor.id)
            lookup = self._cache.get(
                descriptor.id,
                epoch.query,
                options,
                lambda: engine.search(epoch.query, options),
            )
            # shield: a cancelled awaiter must not cancel the shared cache entry
            results: list[SearchResult] = list(await asyncio.shield(lookup))
        except Exception as e:
            logger.warning(f"Engine {descriptor.id} failed for {epoch.query!r}: {e}")
            results = []
            error = str(e) or type(e).__name__

        elapsed_ms = (time.perf_counter() - start) * 1000

        # The only epoch check: right before effects become visible
        if self._epoch != epoch:
            self.discarded += 1
            stale = StaleResultDiscarded(descriptor.id, epoch.query, self.query)
            logger.debug(str(stale))
            return None

        pattern = build_highlight_pattern(self._epoch.query)
        group = ResultGroup(
            engine_id=descriptor.id,
            elapsed_ms=elapsed_ms,
            results=tuple(self._prepare(results, pattern)),
            error=error,
        )
        self._groups.append(group)
        logger.debug(
            f"Published {descriptor.id}: {group.num_results} results in {elapsed_ms:.0f}ms"
        )
        self._notify()
        return group

    @staticmethod
    def _prepare(results: Iterable[SearchResult], pattern: re.Pattern[str] | None) -> list[SearchResult]:
        # Copies: cached results are shared across epochs and must stay pristine
        return [
            result.copy(
                relevance=index,
                title=highlight(result.title, pattern),
                snippet=highlight_optional(result.snippet, pattern),
            )
            for index, result in enumerate(results)
        ]

    def _notify(self) -> None:
        groups = self.result_groups
        for observer in list(self._observers):
            try:
                observer(groups)
            except Exception:
                logger.exception(f"Observer {observer!r} failed")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def group(self, engine_id: str) -> ResultGroup | None:
        for group in self._groups:
            if group.engine_id == engine_id:
                return group
        return None

    def view(self, engine_id: str, mode: SortMode | str = DEFAULT_SORT_MODE) -> list[SearchResult]:
        """Sorted results of one engine's group; the group itself is unchanged."""
        group = self.group(engine_id)
        if group is None:
            return []
        return sort_results(group.results, mode)

    def engine_status(self, engine_id: str) -> int | None:
        """None while the engine is still searching, else its result count."""
        group = self.group(engine_id)
        return group.num_results if group else None

    def non_empty_groups(self, hidden: Iterable[str] = ()) -> list[ResultGroup]:
        """Groups worth rendering: with results and not hidden by the user."""
        hidden_ids = set(hidden)
        return [g for g in self._groups if g.results and g.engine_id not in hidden_ids]
