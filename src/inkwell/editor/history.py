"""Bounded undo/redo history over sanitized snapshots."""

from __future__ import annotations

import logging

from .document_model import Snapshot

__all__ = ["HistoryManager"]

LOGGER = logging.getLogger(__name__)


class HistoryManager:
    """Linear history with a cursor.

    ``index`` points at the snapshot that matches the current document. New
    recordings discard everything after the cursor; navigation only moves the
    cursor. Adjacent duplicates are never stored and the oldest entry is
    evicted once ``limit`` is exceeded.

    ``record_if_changed`` is a read-modify-write over ``(history, index)``;
    callers outside the editor's single event thread must serialize access.
    """

    def __init__(self, limit: int = 50) -> None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"History limit must be a positive integer, got {limit!r}")
        self._limit = limit
        self._history: list[Snapshot] = []
        self._index = -1

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def limit(self) -> int:
        return self._limit

    @property
    def index(self) -> int:
        return self._index

    @property
    def history(self) -> tuple[Snapshot, ...]:
        return tuple(self._history)

    @property
    def current(self) -> Snapshot | None:
        if self._index < 0:
            return None
        return self._history[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._history) - 1

    def __len__(self) -> int:
        return len(self._history)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def record_if_changed(self, content: Snapshot) -> bool:
        """Append ``content`` unless it equals the current snapshot.

        Returns True when a new entry was recorded.
        """

        if self._index >= 0 and self._history[self._index] == content:
            return False
        del self._history[self._index + 1 :]
        self._history.append(content)
        self._index = len(self._history) - 1
        if len(self._history) > self._limit:
            self._history.pop(0)
            self._index -= 1
        LOGGER.debug("Recorded snapshot %d/%d", self._index + 1, len(self._history))
        return True

    def replace_current(self, content: Snapshot) -> None:
        """Overwrite the snapshot under the cursor without moving it.

        Used when the current entry is known to be damaged. Neighbours equal
        to ``content`` are merged so adjacent entries stay distinct.
        """

        if self._index < 0:
            self.record_if_changed(content)
            return
        self._history[self._index] = content
        if self._index + 1 < len(self._history) and self._history[self._index + 1] == content:
            del self._history[self._index + 1]
        if self._index > 0 and self._history[self._index - 1] == content:
            del self._history[self._index]
            self._index -= 1

    def undo(self) -> Snapshot | None:
        """Step back one snapshot; returns None when there is nothing to undo."""

        if not self.can_undo:
            return None
        self._index -= 1
        return self._history[self._index]

    def redo(self) -> Snapshot | None:
        """Step forward one snapshot; returns None when there is nothing to redo."""

        if not self.can_redo:
            return None
        self._index += 1
        return self._history[self._index]

    def clear(self) -> None:
        self._history.clear()
        self._index = -1
