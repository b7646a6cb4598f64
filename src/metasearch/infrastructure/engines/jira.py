"""
Jira engine.

Searches issues through the REST API v2 with JQL text search:

    text ~ "<query>"
    (comment ~ "<query>" OR text ~ "<query>")     # includeComments option

Reserved JQL characters are stripped from the query:
https://confluence.atlassian.com/jiracoreserver073/search-syntax-for-text-fields-861257223.html
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any

import httpx

from metasearch.domain.entities import SUPPORTS_COMMENTS, VERBOSE_SNIPPET, Comment, SearchResult
from metasearch.infrastructure.engines.base import BaseAPIClient, Engine
from metasearch.infrastructure.engines.util import escape_quotes, get_unix_time
from metasearch.shared.exceptions import (
    ConfigurationError,
    ErrorContext,
    InitializationError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)

_RESERVED_RE = re.compile(r"[+&|!(){}\[\]^~*?\\:]")
_WHITESPACE_RE = re.compile(r"\s+")

MAX_RESULTS = 100


def sanitize(query: str) -> str:
    """Strip reserved JQL characters and escape quotes."""
    return _WHITESPACE_RE.sub(" ", escape_quotes(_RESERVED_RE.sub("", query))).strip()


def build_jql(query: str, include_comments: bool = False) -> str:
    term = sanitize(query)
    if include_comments:
        return f'(comment ~ "{term}" OR text ~ "{term}")'
    return f'text ~ "{term}"'


class JiraEngine(Engine):
    """Jira issue search."""

    id = "jira"
    name = "Jira"
    capabilities = frozenset({SUPPORTS_COMMENTS, VERBOSE_SNIPPET})

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None, max_attempts: int = 2) -> None:
        super().__init__()
        self._transport = transport
        self._max_attempts = max_attempts
        self._client: BaseAPIClient | None = None
        self._origin: str | None = None

    def _configure(self, *, origin: str = "", user: str = "", token: str = "", **_: Any) -> None:
        if not origin:
            raise ConfigurationError(
                "Jira origin is required",
                context=ErrorContext(engine_id=self.id, suggestion="Set JIRA_ORIGIN"),
            )
        self._origin = origin.rstrip("/")
        self._client = BaseAPIClient(
            self.id,
            base_url=f"{self._origin}/rest/api/2",
            auth=(user, token),
            headers={"Accept": "application/json"},
            max_attempts=self._max_attempts,
            transport=self._transport,
        )

    async def _search(self, query: str, options: dict[str, Any]) -> list[SearchResult]:
        if self._client is None or self._origin is None:
            raise InitializationError(self.id)
        include_comments = _as_bool(options.get("includeComments", False))

        data = await self._client.get_json(
            "/search",
            params={
                "expand": "renderedFields",
                "fields": "summary,updated,description,comment",
                "jql": build_jql(query, include_comments),
                "maxResults": MAX_RESULTS,
            },
        )

        try:
            issues = data["issues"]
            return [self._to_result(issue, include_comments) for issue in issues]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"unexpected issue payload: {e!r}", engine_id=self.id) from e

    def _to_result(self, issue: dict[str, Any], include_comments: bool) -> SearchResult:
        fields = issue["fields"]
        rendered = issue.get("renderedFields") or {}

        comments = None
        if include_comments:
            rendered_comments = (rendered.get("comment") or {}).get("comments") or []
            comments = [
                Comment(author=c["author"]["displayName"], body=c["body"])
                for c in rendered_comments
            ]

        updated = fields.get("updated")
        return SearchResult(
            # summary is plain text; title is an HTML fragment
            title=f"{issue['key']}: {html.escape(fields['summary'], quote=False)}",
            url=f"{self._origin}/browse/{issue['key']}",
            snippet=rendered.get("description") or None,
            modified=get_unix_time(updated) if updated else None,
            comments=comments,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)
