"""File import helpers that convert external formats into editable markup."""

from __future__ import annotations

from dataclasses import dataclass, field
import html
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Sequence

from markdown_it import MarkdownIt
from ruamel.yaml import YAML

_LOGGER = logging.getLogger(__name__)


class ImporterError(RuntimeError):
    """Raised when a file import operation fails."""


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if not ext:
        return ext
    if not ext.startswith("."):
        return f".{ext}"
    return ext


@dataclass(slots=True)
class ImportResult:
    """Outcome returned by a file import handler."""

    markup: str
    title: str | None = None
    source_format: str = "text"
    metadata: Dict[str, Any] = field(default_factory=dict)
    notes: str | None = None


class ImportHandler(Protocol):
    """Protocol implemented by concrete import handlers."""

    name: str
    extensions: tuple[str, ...]

    def supports(self, path: Path) -> bool:
        """Return True if the handler can process the provided path."""
        ...

    def import_file(self, path: Path) -> ImportResult:
        """Convert the file into editable markup."""
        ...


class FileImporter:
    """Registry-driven facade for converting external file formats."""

    def __init__(self, handlers: Sequence[ImportHandler] | None = None) -> None:
        registry = list(handlers or [])
        if not registry:
            registry.extend((TextImportHandler(), HtmlImportHandler(), MarkdownImportHandler()))
        self._handlers: list[ImportHandler] = registry

    def register_handler(self, handler: ImportHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def handlers(self) -> tuple[ImportHandler, ...]:
        return tuple(self._handlers)

    def supported_extensions(self) -> tuple[str, ...]:
        seen: list[str] = []
        for handler in self._handlers:
            for extension in handler.extensions:
                normalized = _normalize_extension(extension)
                if normalized and normalized not in seen:
                    seen.append(normalized)
        return tuple(seen)

    def import_file(self, path: Path | str) -> ImportResult:
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(target)
        handler = self._select_handler(target)
        if handler is None:
            raise ImporterError(f"No import handler registered for '{target.suffix or target}'.")
        _LOGGER.debug("Importing %s with the %s handler", target, handler.name)
        return handler.import_file(target)

    def _select_handler(self, path: Path) -> ImportHandler | None:
        for handler in self._handlers:
            try:
                if handler.supports(path):
                    return handler
            except Exception as exc:  # pragma: no cover - handler bugs are logged
                _LOGGER.debug("Import handler %s failed during supports(): %s", handler, exc)
        return None


class _SuffixHandler:
    name: str = ""
    extensions: tuple[str, ...] = ()

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ImporterError(f"'{path.name}' is not valid UTF-8 text") from exc
        except OSError as exc:
            raise ImporterError(f"Unable to read '{path.name}': {exc}") from exc


class TextImportHandler(_SuffixHandler):
    """Wrap each line of a plain text file in its own paragraph."""

    name = "text"
    extensions = (".txt",)

    def import_file(self, path: Path) -> ImportResult:
        text = self._read(path)
        paragraphs = [f"<p>{html.escape(line, quote=False)}</p>" for line in text.splitlines()]
        return ImportResult(
            markup="".join(paragraphs) or "<p></p>",
            title=path.stem,
            source_format="text",
            notes="Imported from plain text",
        )


class HtmlImportHandler(_SuffixHandler):
    """Pass HTML through untouched; the editor sanitizes it on load."""

    name = "html"
    extensions = (".html", ".htm")

    def import_file(self, path: Path) -> ImportResult:
        return ImportResult(markup=self._read(path), title=path.stem, source_format="html")


class MarkdownImportHandler(_SuffixHandler):
    """Render Markdown to HTML, moving any YAML front matter into metadata."""

    name = "markdown"
    extensions = (".md", ".markdown")

    def __init__(self, renderer: MarkdownIt | None = None) -> None:
        self._renderer = renderer

    def import_file(self, path: Path) -> ImportResult:
        block, body = _split_frontmatter(self._read(path))
        metadata = _parse_frontmatter_block(block)
        markup = self._render(body)
        title = metadata.get("title")
        return ImportResult(
            markup=markup,
            title=str(title) if title else path.stem,
            source_format="markdown",
            metadata=metadata,
            notes="Front matter moved to metadata" if metadata else None,
        )

    def _render(self, text: str) -> str:
        if self._renderer is None:
            self._renderer = _build_renderer()
        return self._renderer.render(text)


_MARKDOWN_RENDERER: Optional[MarkdownIt] = None


def _build_renderer() -> MarkdownIt:
    global _MARKDOWN_RENDERER
    if _MARKDOWN_RENDERER is None:
        renderer = MarkdownIt("commonmark", {"html": False, "typographer": True})
        renderer.enable("table")
        renderer.enable("strikethrough")
        _MARKDOWN_RENDERER = renderer
    return _MARKDOWN_RENDERER


# ---------------------------------------------------------------------------
# Frontmatter helpers
# ---------------------------------------------------------------------------
def _split_frontmatter(text: str) -> tuple[Optional[str], str]:
    """Return (frontmatter_block, body) from ``text`` if fenced frontmatter exists."""

    if not text:
        return None, ""

    working = text.lstrip("\ufeff")
    if not working.startswith("---"):
        return None, working

    lines = working.splitlines()
    if lines[0].strip() != "---":
        return None, working

    closing_index = None
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() in {"---", "..."}:
            closing_index = idx
            break
    if closing_index is None:
        return None, working

    block = "\n".join(lines[1:closing_index])
    remainder = "\n".join(lines[closing_index + 1 :]).lstrip("\r\n")
    return block, remainder


def _parse_frontmatter_block(block: Optional[str]) -> Dict[str, Any]:
    if not block:
        return {}
    parser = YAML(typ="safe")
    parser.allow_duplicate_keys = False
    try:
        loaded = parser.load(block) or {}
    except Exception:
        _LOGGER.warning("Ignoring unreadable front matter block", exc_info=True)
        return {}
    if isinstance(loaded, dict):
        return dict(loaded)
    return {}


__all__ = [
    "FileImporter",
    "HtmlImportHandler",
    "ImportHandler",
    "ImportResult",
    "ImporterError",
    "MarkdownImportHandler",
    "TextImportHandler",
]
