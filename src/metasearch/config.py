"""
Process configuration.

Settings come from environment variables, plus an optional YAML file
describing the engines:

    METASEARCH_CONFIG      path to engines YAML (see below)
    METASEARCH_HOST        HTTP bind host (default 0.0.0.0)
    METASEARCH_PORT        HTTP port (default 8765)
    METASEARCH_CACHE_SIZE  max request cache entries (unset/0 = unbounded)
    METASEARCH_PREFS       preferences JSON path
    JIRA_ORIGIN / JIRA_USER / JIRA_TOKEN   shortcut for a Jira engine

Engines YAML:

    engines:
      jira:
        origin: https://jira.example.com
        user: bot
        token: secret
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from metasearch.shared.exceptions import ConfigurationError, ErrorContext

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8765
DEFAULT_PREFS_PATH = os.path.expanduser("~/.metasearch/preferences.json")


def load_engine_config(path: str | Path) -> dict[str, dict[str, Any]]:
    """Read the ``engines`` mapping from a YAML file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read engine config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    engines = raw.get("engines", {}) if isinstance(raw, dict) else None
    if not isinstance(engines, dict):
        raise ConfigurationError(
            f"{path}: 'engines' must be a mapping of engine id to settings",
            context=ErrorContext(input_value=engines),
        )
    return engines


def _parse_cache_size(value: str | None) -> int | None:
    if not value:
        return None
    try:
        size = int(value)
    except ValueError:
        raise ConfigurationError(
            f"METASEARCH_CACHE_SIZE must be an integer, got {value!r}",
            context=ErrorContext(input_value=value),
        ) from None
    return size if size > 0 else None


def load_settings(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect settings into the dict shape ApplicationContainer.config expects."""
    env = os.environ if environ is None else environ

    engines: dict[str, dict[str, Any]] = {}
    config_path = env.get("METASEARCH_CONFIG", "").strip()
    if config_path:
        engines.update(load_engine_config(config_path))

    if env.get("JIRA_ORIGIN", "").strip() and "jira" not in engines:
        engines["jira"] = {
            "origin": env["JIRA_ORIGIN"].strip(),
            "user": env.get("JIRA_USER", ""),
            "token": env.get("JIRA_TOKEN", ""),
        }

    try:
        port = int(env.get("METASEARCH_PORT", DEFAULT_PORT))
    except ValueError:
        raise ConfigurationError(f"METASEARCH_PORT must be an integer, got {env.get('METASEARCH_PORT')!r}") from None

    settings = {
        "host": env.get("METASEARCH_HOST", DEFAULT_HOST),
        "port": port,
        "cache_size": _parse_cache_size(env.get("METASEARCH_CACHE_SIZE")),
        "prefs_path": env.get("METASEARCH_PREFS", DEFAULT_PREFS_PATH),
        "engines": engines,
    }
    logger.debug(f"Configured engines: {sorted(engines)}")
    return settings
