"""Persistence adapters for editor content."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Protocol

from .settings import SETTINGS_DIR

__all__ = ["ContentStore", "FileContentStore"]

LOGGER = logging.getLogger(__name__)
_CONTENT_FILENAME = "content.json"
_CONTENT_VERSION = 1


def _default_content_path() -> Path:
    return SETTINGS_DIR / _CONTENT_FILENAME


class ContentStore(Protocol):
    """Synchronous persistence capability consumed by the editor."""

    def save(self, content: str) -> None:
        ...

    def load(self) -> str | None:
        ...


class FileContentStore:
    """Stores the latest document markup as a small JSON payload."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _default_content_path()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, content: str) -> None:
        payload = {
            "version": _CONTENT_VERSION,
            "content": content,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Saved %d characters to %s", len(content), self._path)

    def load(self) -> str | None:
        payload = self._read_payload()
        content = payload.get("content")
        if isinstance(content, str):
            return content
        return None

    def _read_payload(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
            if isinstance(data, Mapping):
                return dict(data)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Content file %s is not valid JSON: %s", self._path, exc)
        return {}
