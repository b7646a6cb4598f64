"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management.

Usage::

    from metasearch.config import load_settings
    from metasearch.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict(load_settings())

    coordinator = container.coordinator()
    registry = container.registry()

    # In tests - override any provider:
    container.registry.override(providers.Object(fake_registry))
"""

from __future__ import annotations

import logging
from typing import Any

from dependency_injector import containers, providers

logger = logging.getLogger(__name__)


def _create_registry(engines: dict[str, dict[str, Any]] | None) -> object:
    """Build engines from config and register them."""
    from metasearch.infrastructure.engines import build_engines
    from metasearch.registry import EngineRegistry

    return EngineRegistry(build_engines(engines))


def _create_request_cache(max_size: int | None) -> object:
    from metasearch.infrastructure.cache import RequestCache

    return RequestCache(max_size=max_size or None)


def _create_preference_store(path: str | None) -> object:
    from metasearch.application.preferences import PreferenceStore

    return PreferenceStore(path)


def _create_coordinator(registry: Any, request_cache: Any, preference_store: Any) -> object:
    """Coordinator whose per-engine options follow the live preferences."""
    from metasearch.application.search import QueryCoordinator

    return QueryCoordinator(
        registry,
        request_cache,
        options_for=lambda descriptor: preference_store.get().options_for(descriptor),
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for Metasearch.

    Manages creation and lifecycle of all core services:
    - ``registry``: configured engines
    - ``request_cache``: session-lifetime lookup memoization
    - ``preference_store``: persisted user preferences
    - ``coordinator``: query fan-out over the registry
    """

    config = providers.Configuration()

    registry = providers.Singleton(
        _create_registry,
        engines=config.engines,
    )

    request_cache = providers.Singleton(
        _create_request_cache,
        max_size=config.cache_size,
    )

    preference_store = providers.Singleton(
        _create_preference_store,
        path=config.prefs_path,
    )

    coordinator = providers.Singleton(
        _create_coordinator,
        registry=registry,
        request_cache=request_cache,
        preference_store=preference_store,
    )


__all__ = ["ApplicationContainer"]
