"""Dataclasses representing editor mode and document state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

__all__ = ["Snapshot", "EditorMode", "EditorState", "CANONICAL_EMPTY_DOCUMENT"]

Snapshot = str
"""Immutable sanitized markup captured at one history point."""

CANONICAL_EMPTY_DOCUMENT: Snapshot = "<p></p>"


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


class EditorMode(str, Enum):
    """What the surface buffer currently represents."""

    NORMAL = "normal"
    PREVIEW = "preview"
    RAW_MARKUP = "raw_markup"


@dataclass(slots=True)
class EditorState:
    """Mode bookkeeping owned by a single editor instance.

    ``last_known_good_markup`` is the rollback target used when a raw markup
    edit cannot be accepted. ``generation`` increases on every full reset so
    deferred callbacks scheduled before the reset can detect they are stale.
    """

    mode: EditorMode = EditorMode.NORMAL
    last_known_good_markup: str = ""
    last_saved: datetime | None = None
    generation: int = 0

    @property
    def is_preview(self) -> bool:
        return self.mode is EditorMode.PREVIEW

    @property
    def is_raw_markup(self) -> bool:
        return self.mode is EditorMode.RAW_MARKUP

    def mark_saved(self) -> None:
        self.last_saved = _utcnow()

    def reset(self) -> None:
        """Return to ``Normal`` with no rollback target and bump the generation."""

        self.mode = EditorMode.NORMAL
        self.last_known_good_markup = ""
        self.generation += 1
