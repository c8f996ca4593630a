"""Markdown export built on markdownify."""

from __future__ import annotations

import logging
import re

from markdownify import MarkdownConverter

__all__ = ["InkwellMarkdownConverter", "html_to_markdown"]

_LOGGER = logging.getLogger(__name__)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class InkwellMarkdownConverter(MarkdownConverter):
    """markdownify converter with the editor's underline and strike rules."""

    def convert_u(self, el, text, *args, **kwargs):
        return _wrap_inline(text, "__")

    def convert_strike(self, el, text, *args, **kwargs):
        return _wrap_inline(text, "~~")

    def convert_s(self, el, text, *args, **kwargs):
        return _wrap_inline(text, "~~")


def _wrap_inline(text: str, marker: str) -> str:
    stripped = text.strip()
    if not stripped:
        return text
    prefix = " " if text[:1].isspace() else ""
    suffix = " " if text[-1:].isspace() else ""
    return f"{prefix}{marker}{stripped}{marker}{suffix}"


def html_to_markdown(markup: str) -> str:
    """Convert editor markup to Markdown; unknown elements contribute their text."""

    if not markup or not markup.strip():
        return ""
    converter = InkwellMarkdownConverter(heading_style="ATX", bullets="-", escape_underscores=False)
    converted = converter.convert(markup)
    result = _EXCESS_NEWLINES.sub("\n\n", converted).strip()
    _LOGGER.debug("Exported %d characters of markup to %d characters of Markdown", len(markup), len(result))
    return result
