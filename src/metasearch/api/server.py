"""
HTTP API Server - per-engine search endpoint for browser and remote clients.

Endpoints:
    GET /api/search?engine=<id>&q=<text>&<engine options>
        JSON array of results for one engine. No pagination. A ``_``
        cache-busting parameter may be present and is ignored.
    GET /api/engines
        Configured engines ordered by name.
    GET /health

Provider failures are logged in full and answered with a generic 502;
raw provider error text is never sent to clients.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from metasearch.application.search import normalize_query
from metasearch.registry import EngineRegistry
from metasearch.shared.exceptions import InitializationError, ProviderError

logger = logging.getLogger(__name__)

# Query parameters consumed by the endpoint itself
_RESERVED_PARAMS = frozenset({"engine", "q", "_"})


class CommentResponse(BaseModel):
    author: str
    body: str


class SearchResultResponse(BaseModel):
    """One result in the common schema."""
    title: str
    url: str
    snippet: str | None = None
    modified: int | None = None
    comments: list[CommentResponse] | None = None


class EngineResponse(BaseModel):
    id: str
    name: str
    capabilities: list[str]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    engines: int


def _parse_option(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return value


def extract_engine_options(params: Any) -> dict[str, Any]:
    """Engine options are every query parameter except engine, q and _."""
    return {
        key: _parse_option(value)
        for key, value in params.items()
        if key not in _RESERVED_PARAMS
    }


def create_api_server(registry: EngineRegistry | None = None) -> FastAPI:
    """
    Create the FastAPI server.

    Args:
        registry: Engines to serve. Defaults to an empty registry.

    Returns:
        Configured FastAPI instance.
    """
    registry = registry if registry is not None else EngineRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"HTTP API serving engines: {', '.join(registry.ids()) or '(none)'}")
        yield
        logger.info("HTTP API shutting down")
        await registry.close()

    app = FastAPI(
        title="Metasearch API",
        description="Search one engine at a time; clients fan out across engines.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy", engines=len(registry))

    @app.get("/api/engines", response_model=list[EngineResponse])
    async def list_engines():
        """Configured engines ordered by display name."""
        return [EngineResponse(**d.to_dict()) for d in registry.list()]

    @app.get(
        "/api/search",
        response_model=list[SearchResultResponse],
        response_model_exclude_none=True,
    )
    async def search(
        request: Request,
        engine: str = Query(..., description="Engine id"),
        q: str = Query(default="", description="Query text"),
    ):
        """
        Search a single engine.

        Extra query parameters are passed to the engine as options
        ("true"/"false" become booleans).
        """
        if engine not in registry:
            raise HTTPException(status_code=404, detail=f"Unknown engine: {engine}")

        query = normalize_query(q)
        if not query:
            return []

        options = extract_engine_options(request.query_params)
        try:
            results = await registry.engine(engine).search(query, options)
        except (ProviderError, InitializationError) as e:
            logger.error(f"Search failed for engine {engine} ({query!r}): {e.to_dict()}")
            raise HTTPException(status_code=502, detail="Search failed")

        logger.info(f"{engine}: {len(results)} results for {query!r}")
        return [r.to_dict() for r in results]

    return app


def create_app_from_env() -> FastAPI:
    """uvicorn factory: ``uvicorn metasearch.api.server:create_app_from_env --factory``."""
    from metasearch.config import load_settings
    from metasearch.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict(load_settings())
    return create_api_server(container.registry())


def run_api_server(registry: EngineRegistry, host: str = "0.0.0.0", port: int = 8765) -> None:
    """Run the HTTP API server (blocking)."""
    import uvicorn

    app = create_api_server(registry)
    logger.info(f"Starting HTTP API server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
