"""
Terminal client: python -m metasearch "login bug" --sort recent

Results are printed per engine as each engine completes.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from metasearch.application.search import SORT_MODE_ORDER, SortMode, sort_results
from metasearch.config import load_settings
from metasearch.container import ApplicationContainer
from metasearch.domain.entities import ResultGroup
from metasearch.presentation import format_date, format_stats, to_terminal_text


def _print_group(group: ResultGroup, name: str, sort_mode: SortMode) -> None:
    print(f"\n== {name} ({format_stats(group)})")
    for result in sort_results(group.results, sort_mode):
        modified = f"  [{format_date(result.modified)}]" if result.modified else ""
        print(f"  {to_terminal_text(result.title)}{modified}")
        print(f"    {result.url}")
        if result.snippet:
            print(f"    {to_terminal_text(result.snippet)[:200]}")


async def _run(query: str, sort_name: str | None) -> int:
    container = ApplicationContainer()
    container.config.from_dict(load_settings())

    registry = container.registry()
    if not len(registry):
        print("No engines configured (set METASEARCH_CONFIG or JIRA_ORIGIN).", file=sys.stderr)
        return 2

    store = container.preference_store()
    sort_mode = SortMode.parse(sort_name) if sort_name else store.get().sort_mode
    coordinator = container.coordinator()
    printed: set[str] = set()

    def on_update(groups: tuple[ResultGroup, ...]) -> None:
        for group in groups:
            if group.engine_id in printed:
                continue
            printed.add(group.engine_id)
            if group.results and not store.get().is_hidden(group.engine_id):
                descriptor = registry.get(group.engine_id)
                _print_group(group, descriptor.name if descriptor else group.engine_id, sort_mode)

    coordinator.subscribe(on_update)
    try:
        groups = await coordinator.search(query)
    finally:
        await registry.close()

    if not any(g.results for g in groups):
        print("No results found.")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Search every configured engine at once")
    parser.add_argument("query", nargs="+", help="Query text")
    parser.add_argument(
        "--sort",
        choices=[m.value for m in SORT_MODE_ORDER],
        default=None,
        help="Sort mode (default: saved preference)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(_run(" ".join(args.query), args.sort)))


if __name__ == "__main__":
    main()
