#!/usr/bin/env python3
"""
Metasearch Server - HTTP Mode

Serves ``GET /api/search?engine=<id>&q=<text>`` for every configured engine.

Usage:
    # Engines from a YAML file
    python run_server.py --config engines.yaml --port 8765

    # Jira only, from environment
    JIRA_ORIGIN=https://jira.example.com JIRA_USER=bot JIRA_TOKEN=... python run_server.py

Environment Variables:
    METASEARCH_CONFIG: Engines YAML file
    METASEARCH_HOST: Server host (default: 0.0.0.0)
    METASEARCH_PORT: Server port (default: 8765)
    JIRA_ORIGIN / JIRA_USER / JIRA_TOKEN: Jira engine credentials
"""

import argparse
import logging
import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from metasearch.api import run_api_server
from metasearch.config import load_settings
from metasearch.container import ApplicationContainer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Run the Metasearch HTTP API server"
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("METASEARCH_CONFIG"),
        help="Engines YAML file"
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Server host (default: METASEARCH_HOST or 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Server port (default: METASEARCH_PORT or 8765)"
    )

    args = parser.parse_args()

    env = dict(os.environ)
    if args.config:
        env["METASEARCH_CONFIG"] = args.config
    settings = load_settings(env)

    container = ApplicationContainer()
    container.config.from_dict(settings)
    registry = container.registry()

    host = args.host or settings["host"]
    port = args.port or settings["port"]
    logger.info("Creating Metasearch server...")
    logger.info(f"  Engines: {', '.join(registry.ids()) or '(none)'}")
    logger.info(f"  Host: {host}")
    logger.info(f"  Port: {port}")

    run_api_server(registry, host=host, port=port)


if __name__ == "__main__":
    main()
