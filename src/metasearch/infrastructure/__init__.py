"""
Infrastructure Layer - External integrations

Contains:
- engines: provider adapters (Jira, remote Metasearch)
- cache: session-lifetime request cache
"""
