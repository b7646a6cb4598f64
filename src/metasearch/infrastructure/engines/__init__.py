"""
Engine adapters.

Each engine translates one provider's query syntax and response shape
into the common SearchResult schema.
"""

from __future__ import annotations

import logging
from typing import Any

from metasearch.infrastructure.engines.base import BaseAPIClient, Engine
from metasearch.infrastructure.engines.jira import JiraEngine
from metasearch.infrastructure.engines.remote import RemoteEngine
from metasearch.shared.exceptions import ConfigurationError, ErrorContext

logger = logging.getLogger(__name__)

# Engine types that can be built from configuration
ENGINE_TYPES: dict[str, type[Engine]] = {
    "jira": JiraEngine,
}


def build_engines(config: dict[str, dict[str, Any]] | None) -> list[Engine]:
    """
    Create and initialize engines from configuration.

    Config shape (YAML or dict):
        jira:
          origin: https://jira.example.com
          user: bot
          token: secret
        wiki:
          type: remote
          name: Wiki
          base_url: http://metasearch.internal:8765
          capabilities: [verbose-snippet]

    The mapping key is the engine id. Entries without ``type`` use the
    engine type of the same name.
    """
    engines: list[Engine] = []
    for engine_id, settings in (config or {}).items():
        settings = dict(settings or {})
        engine_type = settings.pop("type", engine_id)

        if engine_type == "remote":
            engine: Engine = RemoteEngine(
                engine_id,
                settings.pop("name", engine_id),
                frozenset(settings.pop("capabilities", ())),
            )
        elif engine_type in ENGINE_TYPES:
            engine = ENGINE_TYPES[engine_type]()
        else:
            raise ConfigurationError(
                f"Unknown engine type: {engine_type!r}",
                context=ErrorContext(
                    engine_id=engine_id,
                    suggestion=f"Use one of: {', '.join(sorted([*ENGINE_TYPES, 'remote']))}",
                ),
            )

        engine.init(**settings)
        engines.append(engine)
        logger.info(f"Configured engine {engine.id} ({engine.name})")

    return engines


__all__ = [
    "BaseAPIClient",
    "Engine",
    "JiraEngine",
    "RemoteEngine",
    "ENGINE_TYPES",
    "build_engines",
]
