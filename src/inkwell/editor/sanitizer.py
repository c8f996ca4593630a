"""Denylist sanitizer applied to every piece of markup entering the document.

Removed wholesale:

* elements named in :data:`DENIED_TAGS` (with their content),
* attributes whose name starts with ``on`` (inline event handlers),
* attributes whose value uses a scheme in :data:`DENIED_SCHEMES`,
* comments, CDATA sections, declarations, doctypes and processing
  instructions. Browsers close some of these earlier than ``html.parser``
  does (``<!-->`` is a complete comment; ``<![CDATA[`` outside SVG is a
  bogus comment ended by the first ``>``), so their body could render.

Elements carrying the :data:`TRUSTED_HANDLER_CLASS` class keep their
``onclick`` handler; the editor inserts those for its "copy code" buttons.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from bs4.element import PreformattedString, Tag

from .markup import MarkupParser

__all__ = [
    "ContentSanitizer",
    "DENIED_TAGS",
    "DENIED_SCHEMES",
    "TRUSTED_HANDLER_CLASS",
    "sanitize",
]

LOGGER = logging.getLogger(__name__)

DENIED_TAGS: frozenset[str] = frozenset({"script", "object", "embed", "applet", "form"})
DENIED_SCHEMES: tuple[str, ...] = ("javascript:",)
TRUSTED_HANDLER_CLASS = "code-copy-btn"
_TRUSTED_HANDLER = "onclick"
_HANDLER_PREFIX = "on"
_MAX_PASSES = 4
# Browsers ignore whitespace and control characters inside a URL scheme.
_SCHEME_NOISE = re.compile(r"[\s\x00-\x1f]+")


class ContentSanitizer:
    """Strip denylisted elements and attributes from untrusted markup."""

    def __init__(
        self,
        parser: MarkupParser | None = None,
        *,
        denied_tags: Iterable[str] = DENIED_TAGS,
        denied_schemes: Iterable[str] = DENIED_SCHEMES,
        trusted_handler_class: str | None = TRUSTED_HANDLER_CLASS,
    ) -> None:
        self._parser = parser or MarkupParser()
        self._denied_tags = frozenset(tag.lower() for tag in denied_tags)
        self._denied_schemes = tuple(scheme.lower() for scheme in denied_schemes)
        self._trusted_class = trusted_handler_class

    @property
    def denied_tags(self) -> frozenset[str]:
        return self._denied_tags

    def sanitize(self, markup: str | None) -> str:
        """Return a cleaned copy of ``markup``; never raises."""

        current = "" if markup is None else str(markup)
        try:
            # Re-run until the output is a fixed point so that sanitize(sanitize(s)) == sanitize(s).
            for _ in range(_MAX_PASSES):
                cleaned = self._clean_once(current)
                if cleaned == current:
                    break
                current = cleaned
            return current
        except Exception:
            LOGGER.exception("Sanitizer failed; falling back to escaped text")
            return self._escaped(current)

    __call__ = sanitize

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _clean_once(self, markup: str) -> str:
        tree = self._parser.parse(markup).tree
        for element in tree.find_all(list(self._denied_tags)):
            if not element.decomposed:
                element.decompose()
        for node in [item for item in tree.descendants if isinstance(item, PreformattedString)]:
            node.extract()
        for element in tree.find_all(True):
            self._strip_attributes(element)
        return self._parser.serialize(tree)

    def _strip_attributes(self, element: Tag) -> None:
        trusted = self._is_trusted(element)
        for name in list(element.attrs):
            lowered = name.lower()
            if lowered.startswith(_HANDLER_PREFIX):
                if trusted and lowered == _TRUSTED_HANDLER:
                    continue
                del element.attrs[name]
                continue
            if self._has_denied_scheme(element.attrs[name]):
                del element.attrs[name]

    def _is_trusted(self, element: Tag) -> bool:
        if not self._trusted_class:
            return False
        classes = element.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        return self._trusted_class in classes

    def _has_denied_scheme(self, value: object) -> bool:
        if isinstance(value, (list, tuple)):
            value = " ".join(str(item) for item in value)
        normalized = _SCHEME_NOISE.sub("", str(value)).lower()
        return any(normalized.startswith(scheme) for scheme in self._denied_schemes)

    def _escaped(self, markup: str) -> str:
        tree = self._parser.parse("").tree
        tree.append(markup)
        return self._parser.serialize(tree)


_DEFAULT_SANITIZER: ContentSanitizer | None = None


def sanitize(markup: str | None) -> str:
    """Sanitize ``markup`` with the default denylists."""

    global _DEFAULT_SANITIZER
    if _DEFAULT_SANITIZER is None:
        _DEFAULT_SANITIZER = ContentSanitizer()
    return _DEFAULT_SANITIZER.sanitize(markup)
