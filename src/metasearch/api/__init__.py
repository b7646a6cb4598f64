"""
HTTP API for Metasearch.

Serves per-engine searches to browsers and remote coordinators.
"""

from .server import create_api_server, run_api_server

__all__ = ["create_api_server", "run_api_server"]
