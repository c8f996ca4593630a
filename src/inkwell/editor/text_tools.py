"""Plain-text helpers: statistics, search and literal replacement."""

from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag

from .markup import MarkupParser

__all__ = [
    "TextStats",
    "extract_text",
    "count_words",
    "count_lines",
    "text_stats",
    "find_matches",
    "replace_text",
]

LINE_TAGS = frozenset({"p", "div", "h1", "h2", "h3", "h4", "h5", "h6"})
_SKIPPED_TAGS = frozenset({"script", "style", "template"})
_BLANK_LINES = re.compile(r"\n\s*\n+")

_PARSER = MarkupParser()


@dataclass(frozen=True, slots=True)
class TextStats:
    words: int
    lines: int
    characters: int

    def format_status(self) -> str:
        return f"Words: {self.words} | Lines: {self.lines}"


def extract_text(markup: str, *, parser: MarkupParser | None = None) -> str:
    """Return the visible text of ``markup`` with block boundaries as newlines."""

    tree = (parser or _PARSER).parse(markup).tree
    pieces: list[str] = []
    _collect(tree, pieces)
    text = _BLANK_LINES.sub("\n", "".join(pieces))
    return text.strip("\n")


def _collect(node: Tag, pieces: list[str]) -> None:
    for child in node.children:
        if isinstance(child, Tag):
            name = child.name
            if name in _SKIPPED_TAGS:
                continue
            if name == "br":
                pieces.append("\n")
                continue
            if name in LINE_TAGS:
                pieces.append("\n")
                _collect(child, pieces)
                pieces.append("\n")
            else:
                _collect(child, pieces)
        elif type(child) is NavigableString:
            pieces.append(str(child))


def count_words(text: str) -> int:
    return len(text.split())


def count_lines(text: str) -> int:
    return sum(1 for line in text.splitlines() if line.strip())


def text_stats(markup: str, *, parser: MarkupParser | None = None) -> TextStats:
    text = extract_text(markup, parser=parser)
    return TextStats(words=count_words(text), lines=count_lines(text), characters=len(text))


def _needle_pattern(needle: str) -> re.Pattern[str]:
    if not isinstance(needle, str) or not needle:
        raise ValueError("Search text must be a non-empty string")
    return re.compile(re.escape(needle), re.IGNORECASE)


def _text_nodes(tree: BeautifulSoup) -> list[NavigableString]:
    return [
        node
        for node in tree.find_all(string=True)
        if type(node) is NavigableString and not any(parent.name in _SKIPPED_TAGS for parent in node.parents)
    ]


def find_matches(markup: str, needle: str, *, parser: MarkupParser | None = None) -> int:
    """Count case-insensitive occurrences of ``needle`` in the visible text.

    Matches are counted per text node, so a needle split across two inline
    elements is not found.
    """

    pattern = _needle_pattern(needle)
    tree = (parser or _PARSER).parse(markup).tree
    return sum(len(pattern.findall(str(node))) for node in _text_nodes(tree))


def replace_text(
    markup: str,
    needle: str,
    replacement: str,
    *,
    parser: MarkupParser | None = None,
) -> tuple[str, int]:
    """Replace every occurrence of ``needle`` in text nodes with ``replacement``.

    Tag names and attribute values are never touched. Returns the new markup
    and the number of replacements made; the markup is returned unchanged when
    nothing matched.
    """

    pattern = _needle_pattern(needle)
    active = parser or _PARSER
    tree = active.parse(markup).tree
    total = 0
    for node in _text_nodes(tree):
        updated, count = pattern.subn(lambda _match: replacement, str(node))
        if count:
            node.replace_with(NavigableString(updated))
            total += count
    if not total:
        return markup, 0
    return active.serialize(tree), total
