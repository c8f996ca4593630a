"""Tolerant markup parsing backed by BeautifulSoup."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag

__all__ = ["MarkupParser", "ParsedMarkup", "PARSER_FEATURES"]

LOGGER = logging.getLogger(__name__)
PARSER_FEATURES = "html.parser"


@dataclass(slots=True)
class ParsedMarkup:
    """Result of a tolerant parse.

    ``node_count`` counts every node below the root, ``element_count`` only
    the element (tag) nodes among them.
    """

    tree: BeautifulSoup
    node_count: int
    element_count: int

    @property
    def has_elements(self) -> bool:
        return self.element_count > 0


class MarkupParser:
    """Parse, serialize and extract text from HTML fragments.

    The parser never raises: malformed input is repaired the way
    ``html.parser`` repairs it, and anything it still rejects is treated as a
    plain text fragment.
    """

    def __init__(self, features: str = PARSER_FEATURES) -> None:
        self._features = features

    def parse(self, text: str) -> ParsedMarkup:
        source = "" if text is None else str(text)
        try:
            tree = BeautifulSoup(source, self._features)
        except Exception:  # html.parser may still choke on pathological input
            LOGGER.debug("Tolerant parse failed; treating input as text", exc_info=True)
            tree = BeautifulSoup("", self._features)
            tree.append(NavigableString(source))
        nodes = 0
        elements = 0
        for node in tree.descendants:
            nodes += 1
            if isinstance(node, Tag):
                elements += 1
        return ParsedMarkup(tree=tree, node_count=nodes, element_count=elements)

    def serialize(self, tree: BeautifulSoup | Tag) -> str:
        return tree.decode(formatter="minimal")

    def text_of(self, markup: str) -> str:
        """Return the visible text of ``markup`` with entities decoded."""

        return self.parse(markup).tree.get_text()

    def fragment(self, text: str) -> list:
        """Parse ``text`` and detach its top-level nodes for grafting elsewhere."""

        tree = self.parse(text).tree
        return [child.extract() for child in list(tree.contents)]
