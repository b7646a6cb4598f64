"""
Engine adapter interface and shared HTTP plumbing.

Every provider ("engine") is a thin authenticated HTTP client that
translates the provider's native query syntax and response shape into
the common SearchResult schema.

Lifecycle:
    engine = JiraEngine()
    engine.init(origin="https://jira.example.com", user="bot", token="...")
    results = await engine.search("login bug", {"includeComments": True})

init() is idempotent and must be called before search(); calling
search() on an uninitialized engine raises InitializationError
synchronously, before any coroutine is created.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any

import httpx
from typing_extensions import Self

from metasearch.domain.entities import EngineDescriptor, SearchResult
from metasearch.shared.async_utils import async_retry
from metasearch.shared.exceptions import (
    AuthenticationError,
    InitializationError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
)

logger = logging.getLogger(__name__)


class Engine(ABC):
    """
    Base class for all search engines.

    Subclasses set ``id``, ``name`` and ``capabilities`` and implement
    ``_configure()`` and ``_search()``.
    """

    id: str = ""
    name: str = ""
    capabilities: frozenset[str] = frozenset()

    def __init__(self) -> None:
        self._initialized = False

    @property
    def descriptor(self) -> EngineDescriptor:
        return EngineDescriptor(id=self.id, name=self.name, capabilities=frozenset(self.capabilities))

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, **credentials: Any) -> None:
        """Configure credentials. Calling it again replaces the configuration."""
        self._configure(**credentials)
        self._initialized = True
        logger.debug(f"Engine initialized: {self.id}")

    def require_initialized(self) -> None:
        if not self._initialized:
            raise InitializationError(self.id)

    def search(self, query: str, options: dict[str, Any] | None = None) -> Awaitable[list[SearchResult]]:
        """Search the provider. Raises InitializationError before awaiting."""
        self.require_initialized()
        return self._search(query, dict(options or {}))

    @abstractmethod
    def _configure(self, **credentials: Any) -> None:
        """Apply provider-specific credentials."""
        ...

    @abstractmethod
    async def _search(self, query: str, options: dict[str, Any]) -> list[SearchResult]:
        """Run the provider query and map the response."""
        ...

    async def close(self) -> None:
        """Release network resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class BaseAPIClient:
    """
    httpx.AsyncClient wrapper used by engines.

    Provides:
    - Timeout and default headers
    - Retry with exponential backoff on network errors
    - Translation of httpx failures into the ProviderError hierarchy

    Unlike a best-effort client this one never returns None on failure:
    the query coordinator relies on the exception to record an empty
    result group for the engine.
    """

    def __init__(
        self,
        engine_id: str,
        base_url: str = "",
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        max_attempts: int = 2,
        retry_base_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._engine_id = engine_id
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers=headers or {},
            auth=auth,
            transport=transport,
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``url`` and decode the JSON body, retrying network failures."""
        request = async_retry(
            max_attempts=self._max_attempts,
            base_delay=self._retry_base_delay,
        )(self._get_json_once)
        return await request(url, params)

    async def _get_json_once(self, url: str, params: dict[str, Any] | None) -> Any:
        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out: {e}", engine_id=self._engine_id) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request failed: {e}", engine_id=self._engine_id) from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                engine_id=self._engine_id,
            )
        if response.status_code == 429 or response.status_code >= 500:
            raise ProviderError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                engine_id=self._engine_id,
                retryable=True,
            )
        if response.is_error:
            raise ProviderError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                engine_id=self._engine_id,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"invalid JSON body: {e}", engine_id=self._engine_id) from e

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
