"""
Remote engine - proxies one engine hosted by a Metasearch HTTP server.

Calls ``GET /api/search?engine=<id>&q=<text>&<options>&_=<timestamp>``
and decodes the JSON array into SearchResult objects. Lets a coordinator
run in a different process from the engines and their credentials.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from metasearch.domain.entities import SearchResult
from metasearch.infrastructure.engines.base import BaseAPIClient, Engine
from metasearch.infrastructure.engines.util import querify
from metasearch.shared.exceptions import (
    ConfigurationError,
    ErrorContext,
    InitializationError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)


class RemoteEngine(Engine):
    """An engine served by another Metasearch instance."""

    def __init__(
        self,
        engine_id: str,
        name: str,
        capabilities: frozenset[str] | set[str] = frozenset(),
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_attempts: int = 1,
    ) -> None:
        super().__init__()
        self.id = engine_id
        self.name = name
        self.capabilities = frozenset(capabilities)
        self._transport = transport
        self._max_attempts = max_attempts
        self._client: BaseAPIClient | None = None

    def _configure(self, *, base_url: str = "", timeout: float = 30.0, **_: Any) -> None:
        if not base_url:
            raise ConfigurationError(
                f"Remote engine {self.id!r} needs a base_url",
                context=ErrorContext(engine_id=self.id),
            )
        self._client = BaseAPIClient(
            self.id,
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
            max_attempts=self._max_attempts,
            transport=self._transport,
        )

    async def _search(self, query: str, options: dict[str, Any]) -> list[SearchResult]:
        if self._client is None:
            raise InitializationError(self.id)
        params = {**options, "engine": self.id, "q": query}
        data = await self._client.get_json(f"/api/search?{querify(params)}")

        if not isinstance(data, list):
            raise MalformedResponseError(f"expected a JSON array, got {type(data).__name__}", engine_id=self.id)
        try:
            return [SearchResult.from_dict(item) for item in data]
        except (AttributeError, TypeError, ValueError, KeyError) as e:
            raise MalformedResponseError(f"bad result item: {e!r}", engine_id=self.id) from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
