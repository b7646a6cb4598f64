"""
User Preferences - persisted display and engine settings.

Stored as one JSON blob:

    {
      "dark": false,
      "hiddenEngines": ["confluence"],
      "sortMode": "recent",
      "providerOptions": {"jira": {"includeComments": true}}
    }

Reading never fails: a missing or corrupt file degrades to defaults.
Writing never raises either: a PersistenceError is logged and the
in-memory preferences stay authoritative.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from metasearch.application.search.ranking import DEFAULT_SORT_MODE, SortMode
from metasearch.domain.entities import SUPPORTS_COMMENTS, EngineDescriptor
from metasearch.shared.exceptions import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)

INCLUDE_COMMENTS = "includeComments"


@dataclass(frozen=True)
class Preferences:
    """Immutable preference snapshot; every change returns a new instance."""

    dark: bool = False
    hidden_engines: tuple[str, ...] = ()
    sort_mode: SortMode = DEFAULT_SORT_MODE
    engine_options: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Preferences:
        """Build from the persisted blob, ignoring fields that don't parse."""
        try:
            sort_mode = SortMode.parse(data.get("sortMode"))
        except ConfigurationError:
            logger.warning(f"Ignoring unknown sort mode {data.get('sortMode')!r}")
            sort_mode = DEFAULT_SORT_MODE

        dark = data.get("dark")
        hidden = data.get("hiddenEngines") or []
        options = data.get("providerOptions") or {}
        return cls(
            dark=dark if isinstance(dark, bool) else False,
            hidden_engines=tuple(sorted(str(e) for e in hidden)) if isinstance(hidden, list) else (),
            sort_mode=sort_mode,
            engine_options={
                str(k): dict(v) for k, v in options.items() if isinstance(v, dict)
            } if isinstance(options, dict) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dark": self.dark,
            "hiddenEngines": list(self.hidden_engines),
            "sortMode": self.sort_mode.value,
            "providerOptions": self.engine_options,
        }

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    def toggle_theme(self) -> Preferences:
        return replace(self, dark=not self.dark)

    def with_sort_mode(self, mode: SortMode | str) -> Preferences:
        return replace(self, sort_mode=SortMode.parse(mode))

    def toggle_engine(self, engine_id: str) -> Preferences:
        """Show a hidden engine's results, or hide a visible one."""
        if engine_id in self.hidden_engines:
            hidden = tuple(e for e in self.hidden_engines if e != engine_id)
        else:
            hidden = tuple(sorted((*self.hidden_engines, engine_id)))
        return replace(self, hidden_engines=hidden)

    def toggle_comments(self, engine_id: str) -> Preferences:
        current = self.engine_options.get(engine_id, {})
        updated = {**current, INCLUDE_COMMENTS: not current.get(INCLUDE_COMMENTS, False)}
        return replace(self, engine_options={**self.engine_options, engine_id: updated})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_hidden(self, engine_id: str) -> bool:
        return engine_id in self.hidden_engines

    def options_for(self, descriptor: EngineDescriptor) -> dict[str, Any]:
        """Per-engine search options; comment search only where supported."""
        options = dict(self.engine_options.get(descriptor.id, {}))
        if descriptor.supports(SUPPORTS_COMMENTS):
            options[INCLUDE_COMMENTS] = bool(options.get(INCLUDE_COMMENTS, False))
        else:
            options.pop(INCLUDE_COMMENTS, None)
        return options


class PreferenceStore:
    """
    JSON-file backed preference storage.

    Example:
        store = PreferenceStore("~/.metasearch/preferences.json")
        prefs = store.load()
        store.save(prefs.with_sort_mode("recent"))
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self._current: Preferences | None = None

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self) -> Preferences:
        if self._current is None:
            self._current = self.load()
        return self._current

    def load(self) -> Preferences:
        """Read preferences; defaults on any failure."""
        try:
            data = self._read()
        except PersistenceError as e:
            logger.warning(f"Failed to read preferences: {e}")
            data = {}
        self._current = Preferences.from_dict(data)
        return self._current

    def save(self, prefs: Preferences) -> bool:
        """
        Make ``prefs`` current and persist it.

        Returns:
            True if the file was written, False when nothing changed or
            the write failed.
        """
        if prefs == self._current:
            return False
        self._current = prefs
        try:
            self._write(prefs.to_dict())
        except PersistenceError as e:
            logger.warning(f"Failed to write preferences: {e}")
            return False
        return self._path is not None

    def _read(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"{self._path}: {e}", path=str(self._path)) from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self._path}: expected a JSON object", path=str(self._path))
        return data

    def _write(self, data: dict[str, Any]) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise PersistenceError(f"{self._path}: {e}", path=str(self._path)) from e
