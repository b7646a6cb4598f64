"""
Engine Registry - static catalog of configured search engines.

Populated once during startup and read-only afterwards. Iteration order
is by display name, which is also the order in which the coordinator
launches lookups and the order of the sidebar.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from metasearch.domain.entities import EngineDescriptor
from metasearch.infrastructure.engines.base import Engine
from metasearch.shared.exceptions import ConfigurationError, ErrorContext

logger = logging.getLogger(__name__)


class EngineRegistry:
    """
    Catalog of engines keyed by id.

    Example:
        registry = EngineRegistry([JiraEngine(), ...])
        for descriptor in registry.list():
            print(descriptor.id, descriptor.name)
    """

    def __init__(self, engines: Iterable[Engine] = ()) -> None:
        self._engines: dict[str, Engine] = {}
        for engine in engines:
            self.register(engine)

    def register(self, engine: Engine) -> None:
        """Register an engine. Only valid during startup."""
        if not engine.id:
            raise ConfigurationError(f"Engine has no id: {engine!r}")
        if engine.id in self._engines:
            raise ConfigurationError(
                f"Duplicate engine id: {engine.id!r}",
                context=ErrorContext(engine_id=engine.id, suggestion="Engine ids must be unique"),
            )
        self._engines[engine.id] = engine
        logger.debug(f"Registered engine {engine.id}")

    def list(self) -> list[EngineDescriptor]:
        """Descriptors ordered by display name."""
        return sorted(
            (engine.descriptor for engine in self._engines.values()),
            key=lambda d: d.name,
        )

    def get(self, engine_id: str) -> EngineDescriptor | None:
        engine = self._engines.get(engine_id)
        return engine.descriptor if engine else None

    def engine(self, engine_id: str) -> Engine:
        """Return the adapter for ``engine_id``."""
        try:
            return self._engines[engine_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown engine: {engine_id!r}",
                context=ErrorContext(engine_id=engine_id),
            ) from None

    def ids(self) -> list[str]:
        return [d.id for d in self.list()]

    async def close(self) -> None:
        for engine in self._engines.values():
            await engine.close()

    def __contains__(self, engine_id: object) -> bool:
        return engine_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[EngineDescriptor]:
        return iter(self.list())
