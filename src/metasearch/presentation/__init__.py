"""
Presentation Layer - display helpers and the terminal client.
"""

from .formatting import (
    format_date,
    format_stats,
    page_title,
    sidebar_title,
    to_terminal_text,
)

__all__ = [
    "format_date",
    "format_stats",
    "page_title",
    "sidebar_title",
    "to_terminal_text",
]
