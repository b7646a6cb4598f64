"""
Query highlighting inside provider-supplied HTML fragments.

Titles and snippets arrive as HTML. Highlighting works on the parsed
document, never on the raw markup: only text nodes are touched, so tag
names, attribute values and element boundaries survive unchanged. A match
that would straddle two elements is highlighted inside each element's own
text only.

Pattern derivation:
    "foo bar"  ->  stripped to "foobar"
               ->  f(?:\\W|_)*o(?:\\W|_)*o(?:\\W|_)*b ...
    so "foo-bar", "foo bar" and "FooBar" each highlight as one span.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, NavigableString

logger = logging.getLogger(__name__)

MARK_TAG = "mark"

# Separators allowed between query characters inside a match
_SEPARATOR = r"(?:\W|_)*"
_STRIP_RE = re.compile(r"\W|_")

# Text inside these elements is never highlighted
_SKIP_PARENTS = frozenset({"script", "style", "textarea", MARK_TAG})


def build_highlight_pattern(query: str) -> re.Pattern[str] | None:
    """
    Build the case-insensitive highlight pattern for a query.

    Returns None when the query has no word characters left after
    stripping, which makes highlighting a no-op.
    """
    stripped = _STRIP_RE.sub("", query or "")
    if not stripped:
        return None
    return re.compile(_SEPARATOR.join(re.escape(ch) for ch in stripped), re.IGNORECASE)


def highlight(fragment: str, pattern: re.Pattern[str] | None) -> str:
    """
    Wrap every match of ``pattern`` in the fragment's text nodes with <mark>.

    Args:
        fragment: HTML fragment (title or snippet)
        pattern: Compiled pattern from build_highlight_pattern()

    Returns:
        Highlighted HTML. The input string itself is returned when nothing
        matched, so non-matching fragments are never re-serialized.
    """
    if pattern is None or not fragment:
        return fragment

    soup = _parse_fragment(fragment)
    changed = False

    # Materialize first: replacing nodes while iterating would skip siblings
    for node in list(soup.find_all(string=True)):
        if type(node) is not NavigableString:
            continue  # comments, CDATA, doctype
        if node.parent is not None and node.parent.name in _SKIP_PARENTS:
            continue
        if _mark_text_node(soup, node, pattern):
            changed = True

    if not changed:
        return fragment
    return "".join(str(child) for child in soup.body.contents)


def _parse_fragment(fragment: str) -> BeautifulSoup:
    # html5lib applies HTML5 optional end tags (<p>a<p>b is two siblings).
    # The leading <body> keeps <style>/<link> out of an implied <head>.
    return BeautifulSoup(f"<body>{fragment}", "html5lib")


def _mark_text_node(soup: BeautifulSoup, node: NavigableString, pattern: re.Pattern[str]) -> bool:
    text = str(node)
    pieces: list[NavigableString] = []
    cursor = 0

    for match in pattern.finditer(text):
        start, end = match.span()
        if start == end:
            continue
        if start > cursor:
            pieces.append(NavigableString(text[cursor:start]))
        mark = soup.new_tag(MARK_TAG)
        mark.string = text[start:end]
        pieces.append(mark)
        cursor = end

    if not pieces:
        return False
    if cursor < len(text):
        pieces.append(NavigableString(text[cursor:]))

    node.replace_with(*pieces)
    return True


def highlight_optional(fragment: str | None, pattern: re.Pattern[str] | None) -> str | None:
    """highlight() for optional fields such as snippets."""
    if fragment is None:
        return None
    return highlight(fragment, pattern)
