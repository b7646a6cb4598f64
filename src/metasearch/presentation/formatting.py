"""Text formatting for result pages and the terminal client."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup

from metasearch.application.search.highlighter import MARK_TAG
from metasearch.domain.entities import ResultGroup

DISPLAY_TIMEZONE = ZoneInfo("America/New_York")
APP_NAME = "Metasearch"


def format_date(unix_seconds: int) -> str:
    """Converts 1593668572 to "July 2, 2020"."""
    dt = datetime.fromtimestamp(unix_seconds, tz=DISPLAY_TIMEZONE)
    return f"{dt:%B} {dt.day}, {dt.year}"


def format_stats(group: ResultGroup) -> str:
    """e.g. "3 results (1.23 seconds)"."""
    count = group.num_results
    plural = "" if count == 1 else "s"
    return f"{count} result{plural} ({group.elapsed_ms / 1000:.2f} seconds)"


def sidebar_title(status: int | None) -> str:
    """Tooltip for an engine entry given coordinator.engine_status()."""
    if status is None:
        return "Searching..."
    return "Jump to results" if status else "No results found"


def page_title(query: str) -> str:
    return f"{query} - {APP_NAME}"


def to_terminal_text(fragment: str | None) -> str:
    """Flatten an HTML fragment for terminal output; <mark> spans become *bold*."""
    if not fragment:
        return ""
    soup = BeautifulSoup(fragment, "html5lib")
    for mark in soup.find_all(MARK_TAG):
        mark.replace_with(f"*{mark.get_text()}*")
    return " ".join(soup.get_text().split())
