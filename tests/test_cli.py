"""Tests for the terminal client."""

import pytest

from metasearch import __main__ as cli
from metasearch.application.search import SortMode
from metasearch.domain.entities import ResultGroup, SearchResult


def test_print_group_sorted(capsys):
    group = ResultGroup(
        engine_id="jira",
        elapsed_ms=1500.0,
        results=(
            SearchResult(title="Old <mark>login</mark>", url="u1", modified=1593668572, relevance=0),
            SearchResult(title="New", url="u2", modified=1700000000, relevance=1),
        ),
    )
    cli._print_group(group, "Jira", SortMode.RECENT)
    out = capsys.readouterr().out
    assert "== Jira (2 results (1.50 seconds))" in out
    assert out.index("New") < out.index("Old *login*")
    assert "[July 2, 2020]" in out


@pytest.mark.asyncio
async def test_no_engines_configured(monkeypatch, temp_dir, capsys):
    monkeypatch.setattr(
        cli,
        "load_settings",
        lambda: {"host": "", "port": 0, "cache_size": None, "prefs_path": str(temp_dir / "p.json"), "engines": {}},
    )
    assert await cli._run("login", None) == 2
    assert "No engines configured" in capsys.readouterr().err
