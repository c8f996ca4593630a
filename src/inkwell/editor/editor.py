"""Facade wiring the sanitizer, history, mode controller and integrity guard."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable

from ..services.exporters import html_to_markdown
from ..services.importers import FileImporter, ImporterError
from ..services.notifications import LoggingNotifier, NotificationKind, NotificationSink
from ..services.persistence import ContentStore
from ..services.settings import EditorSettings
from . import text_tools
from .deferred import AUTO_PERSIST, INTEGRITY_CHECK, DeferredTasks
from .document_model import EditorMode, EditorState
from .errors import CapabilityUnavailable, EditorError, ValidationError
from .history import HistoryManager
from .integrity import CORRUPTION_PREDICATES, CorruptionPredicate, IntegrityGuard, RepairOutcome
from .markup import MarkupParser
from .modes import ModeController
from .sanitizer import ContentSanitizer
from .surface import REQUIRED_SURFACE_METHODS, RichSurface
from .text_tools import TextStats

__all__ = ["MarkupEditor", "ContentListener"]

LOGGER = logging.getLogger(__name__)

ContentListener = Callable[[str], None]


def _require_surface(surface: RichSurface | None) -> RichSurface:
    if surface is None:
        raise CapabilityUnavailable("rich surface")
    missing = [name for name in REQUIRED_SURFACE_METHODS if not callable(getattr(surface, name, None))]
    if missing:
        raise CapabilityUnavailable("rich surface", f"missing {', '.join(missing)}")
    return surface


class MarkupEditor:
    """Document state and integrity engine for one editable surface.

    Every public entry point catches failures at its boundary: errors are
    logged, turned into notifications, and the history, mode and rollback
    state are left consistent. Only construction raises, with
    :class:`CapabilityUnavailable`, when the surface cannot be driven.
    """

    def __init__(
        self,
        surface: RichSurface | None,
        *,
        settings: EditorSettings | None = None,
        notifier: NotificationSink | None = None,
        store: ContentStore | None = None,
        importer: FileImporter | None = None,
        parser: MarkupParser | None = None,
        sanitizer: ContentSanitizer | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        initial_content: str | None = None,
        predicates: Iterable[CorruptionPredicate] = CORRUPTION_PREDICATES,
    ) -> None:
        self._surface = _require_surface(surface)
        self._settings = settings or EditorSettings()
        self._notifier = notifier or LoggingNotifier()
        self._store = store
        self._importer = importer
        self._parser = parser or MarkupParser()
        self._sanitizer = sanitizer or ContentSanitizer(self._parser)
        self._state = EditorState()
        self._history = HistoryManager(self._settings.history_limit)
        self._modes = ModeController(
            self._surface,
            self._state,
            parser=self._parser,
            sanitizer=self._sanitizer,
            notifier=self._notifier,
            commit=self._commit,
        )
        self._guard = IntegrityGuard(
            self._surface,
            self._state,
            self._history,
            self._modes,
            parser=self._parser,
            sanitizer=self._sanitizer,
            notifier=self._notifier,
            commit=self._commit,
            predicates=predicates,
        )
        self._tasks = DeferredTasks(self, loop)
        self._listeners: list[ContentListener] = []
        self._destroyed = False

        source = self._surface.get_markup() if initial_content is None else initial_content
        self._surface.set_editable(True)
        self._commit(source)
        if not self._tasks.schedule(INTEGRITY_CHECK, self._settings.integrity_check_delay, _run_integrity_check):
            self._guard.check_and_repair()
        LOGGER.debug("Editor initialised with %d history entries", len(self._history))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def settings(self) -> EditorSettings:
        return self._settings

    @property
    def surface(self) -> RichSurface:
        return self._surface

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def modes(self) -> ModeController:
        return self._modes

    @property
    def guard(self) -> IntegrityGuard:
        return self._guard

    @property
    def tasks(self) -> DeferredTasks:
        return self._tasks

    @property
    def mode(self) -> EditorMode:
        return self._state.mode

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def is_alive(self) -> bool:
        return not self._destroyed

    @property
    def content(self) -> str:
        return self.get_content()

    def get_content(self) -> str:
        """Return the sanitized document markup.

        While the raw markup view is active the surface holds literal text,
        so the rollback target is returned instead.
        """

        try:
            return self._current_markup()
        except Exception:
            LOGGER.exception("Failed to read content")
            self._notify("Failed to read content", NotificationKind.ERROR)
            return self._state.last_known_good_markup

    def add_content_listener(self, listener: ContentListener) -> None:
        """Register a callback fired with the accepted markup after each commit."""

        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Content mutation
    # ------------------------------------------------------------------
    def set_content(self, markup: str) -> bool:
        if not self._check_alive("set_content"):
            return False
        if not isinstance(markup, str):
            self._report(ValidationError("Content must be a string"))
            return False
        try:
            self._modes.discard_raw_markup()
            self._surface.set_editable(self._state.mode is EditorMode.NORMAL)
            self._commit(markup)
        except Exception:
            LOGGER.exception("Failed to set content")
            self._notify("Failed to set content", NotificationKind.ERROR)
            return False
        self._schedule_auto_persist()
        return True

    def handle_input(self) -> None:
        """React to the host reporting that the user edited the surface."""

        if not self._check_alive("handle_input"):
            return
        try:
            mode = self._state.mode
            if mode is EditorMode.RAW_MARKUP:
                self._modes.handle_raw_edit()
                return
            if mode is EditorMode.PREVIEW:
                LOGGER.debug("Ignoring input while previewing")
                return
            accepted = self._sanitizer.sanitize(self._surface.get_markup())
            self._state.last_known_good_markup = accepted
            if self._history.record_if_changed(accepted):
                self._emit(accepted)
                self._schedule_auto_persist()
        except Exception:
            LOGGER.exception("Failed to process input")
            self._notify("Failed to process input", NotificationKind.ERROR)

    def paste(self, text: str) -> bool:
        """Insert ``text`` as plain text and record the result."""

        if not self._check_alive("paste"):
            return False
        if not isinstance(text, str):
            self._report(ValidationError("Pasted content must be a string"))
            return False
        if not self._modes.can_mutate:
            self._notify("Paste is only available in normal mode", NotificationKind.WARNING)
            return False
        try:
            inserted = self._surface.apply("insertText", text)
        except Exception:
            LOGGER.exception("Paste failed")
            self._notify("Failed to paste content", NotificationKind.ERROR)
            return False
        if not inserted:
            self._notify("Failed to paste content", NotificationKind.ERROR)
            return False
        self.handle_input()
        self._notify("Content pasted successfully", NotificationKind.SUCCESS)
        return True

    def apply_format(self, command: str, value: str | None = None) -> bool:
        if not self._check_alive("apply_format"):
            return False
        try:
            applied = self._modes.apply(command, value)
        except EditorError as exc:
            self._report(exc)
            return False
        if applied:
            self.handle_input()
        return applied

    # ------------------------------------------------------------------
    # History navigation
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        return self._navigate(self._history.undo, "Undo completed", "Nothing to undo")

    def redo(self) -> bool:
        return self._navigate(self._history.redo, "Redo completed", "Nothing to redo")

    def _navigate(self, step: Callable[[], str | None], done: str, empty: str) -> bool:
        if not self._check_alive("history navigation"):
            return False
        if not self._modes.can_mutate:
            self._notify("Undo and redo are only available in normal mode", NotificationKind.WARNING)
            return False
        index = self._history.index
        snapshot = step()
        if snapshot is None:
            self._notify(empty, NotificationKind.INFO)
            return False
        try:
            self._commit(snapshot, normalize=False, record=False)
        except Exception:
            LOGGER.exception("History navigation failed")
            self._restore_history_index(index)
            self._notify("Failed to restore history snapshot", NotificationKind.ERROR)
            return False
        self._notify(done, NotificationKind.INFO)
        return True

    def _restore_history_index(self, index: int) -> None:
        while self._history.index > index and self._history.undo() is not None:
            pass
        while self._history.index < index and self._history.redo() is not None:
            pass
        current = self._history.current
        if current is not None:
            try:
                self._surface.set_markup(current)
            except Exception:
                LOGGER.debug("Unable to restore surface after failed navigation", exc_info=True)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------
    def toggle_preview(self) -> EditorMode:
        if not self._check_alive("toggle_preview"):
            return self._state.mode
        return self._modes.toggle_preview()

    def toggle_raw_markup(self) -> EditorMode:
        if not self._check_alive("toggle_raw_markup"):
            return self._state.mode
        was_raw = self._state.mode is EditorMode.RAW_MARKUP
        mode = self._modes.toggle_raw_markup()
        if was_raw and mode is EditorMode.NORMAL:
            self._guard.check_and_repair()
            self._schedule_auto_persist()
        return self._state.mode

    def edit_raw_markup(self, text: str) -> bool:
        """Replace the raw markup buffer with ``text`` (code view only)."""

        if not self._check_alive("edit_raw_markup"):
            return False
        try:
            self._modes.handle_raw_edit(text)
        except EditorError as exc:
            self._report(exc)
            return False
        except Exception:
            LOGGER.exception("Raw markup edit failed")
            self._notify("Failed to update code view", NotificationKind.ERROR)
            return False
        return True

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------
    def check_integrity(self) -> RepairOutcome:
        if not self._check_alive("check_integrity"):
            return RepairOutcome.SKIPPED
        return self._guard.check_and_repair()

    def reset(self) -> bool:
        if not self._check_alive("reset"):
            return False
        self._tasks.cancel_all()
        if not self._guard.reset():
            return False
        self._emit(self._history.current or "")
        self._notify("Editor reset successfully", NotificationKind.SUCCESS)
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self) -> bool:
        if not self._check_alive("save"):
            return False
        if self._store is None:
            self._report(CapabilityUnavailable("persistence"), "Persistence is not configured")
            return False
        self._tasks.cancel(AUTO_PERSIST)
        try:
            self._store.save(self._current_markup())
        except Exception:
            LOGGER.exception("Save failed")
            self._notify("Save failed", NotificationKind.ERROR)
            return False
        self._state.mark_saved()
        self._notify("Content saved", NotificationKind.SUCCESS)
        return True

    def load(self) -> bool:
        if not self._check_alive("load"):
            return False
        if self._store is None:
            self._report(CapabilityUnavailable("persistence"), "Persistence is not configured")
            return False
        try:
            stored = self._store.load()
        except Exception:
            LOGGER.exception("Load failed")
            self._notify("Load failed", NotificationKind.ERROR)
            return False
        if not stored:
            self._notify("No saved content found", NotificationKind.INFO)
            return False
        if not self.set_content(stored):
            return False
        self._notify("Content loaded", NotificationKind.SUCCESS)
        self._guard.check_and_repair()
        return True

    def _schedule_auto_persist(self) -> None:
        if self._store is None or not self._settings.auto_save_enabled:
            return
        self._tasks.schedule(AUTO_PERSIST, self._settings.auto_save_delay, _run_auto_persist)

    def _auto_persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._current_markup())
        except Exception:
            LOGGER.exception("Auto-save failed")
            self._notify("Auto-save failed", NotificationKind.ERROR)
            return
        self._state.mark_saved()
        LOGGER.debug("Auto-saved content")

    # ------------------------------------------------------------------
    # Find / replace and statistics
    # ------------------------------------------------------------------
    def find(self, needle: str) -> int:
        if not self._check_alive("find"):
            return 0
        try:
            count = text_tools.find_matches(self._current_markup(), needle, parser=self._parser)
        except ValueError as exc:
            self._report(ValidationError(str(exc)))
            return 0
        except Exception:
            LOGGER.exception("Search failed")
            self._notify("Search failed", NotificationKind.ERROR)
            return 0
        if count:
            self._notify(f"Found {count} match(es)", NotificationKind.INFO)
        else:
            self._notify("No matches found", NotificationKind.INFO)
        return count

    def replace(self, needle: str, replacement: str) -> int:
        if not self._check_alive("replace"):
            return 0
        if not self._modes.can_mutate:
            self._notify("Replace is only available in normal mode", NotificationKind.WARNING)
            return 0
        try:
            updated, count = text_tools.replace_text(
                self._current_markup(), needle, str(replacement or ""), parser=self._parser
            )
        except ValueError as exc:
            self._report(ValidationError(str(exc)))
            return 0
        except Exception:
            LOGGER.exception("Replace failed")
            self._notify("Replace failed", NotificationKind.ERROR)
            return 0
        if not count:
            self._notify("No matches found", NotificationKind.INFO)
            return 0
        try:
            self._commit(updated)
        except Exception:
            LOGGER.exception("Replace failed")
            self._notify("Replace failed", NotificationKind.ERROR)
            return 0
        self._schedule_auto_persist()
        self._notify(f"Replaced {count} match(es)", NotificationKind.SUCCESS)
        return count

    def stats(self) -> TextStats:
        try:
            return text_tools.text_stats(self._current_markup(), parser=self._parser)
        except Exception:
            LOGGER.exception("Failed to compute text statistics")
            self._notify("Failed to compute text statistics", NotificationKind.ERROR)
            return TextStats(words=0, lines=0, characters=0)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------
    def import_file(self, path: Path | str) -> bool:
        if not self._check_alive("import_file"):
            return False
        importer = self._importer or FileImporter()
        try:
            result = importer.import_file(path)
        except FileNotFoundError:
            self._notify(f"File not found: {path}", NotificationKind.ERROR)
            return False
        except ImporterError as exc:
            LOGGER.warning("Import of %s failed: %s", path, exc)
            self._notify(f"Import failed: {exc}", NotificationKind.ERROR)
            return False
        if not self.set_content(result.markup):
            return False
        self._notify("File imported successfully", NotificationKind.SUCCESS)
        return True

    def export_markdown(self) -> str:
        try:
            return html_to_markdown(self._current_markup())
        except Exception:
            LOGGER.exception("Markdown export failed")
            self._notify("Markdown export failed", NotificationKind.ERROR)
            return ""

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def destroy(self) -> None:
        """Cancel deferred work and detach from the surface.

        Idempotent. Callbacks that were already queued observe
        ``is_alive == False`` and do nothing.
        """

        if self._destroyed:
            return
        self._destroyed = True
        self._tasks.cancel_all()
        self._listeners.clear()
        LOGGER.debug("Editor destroyed")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _current_markup(self) -> str:
        if self._state.mode is EditorMode.RAW_MARKUP:
            return self._state.last_known_good_markup
        return self._sanitizer.sanitize(self._surface.get_markup())

    def _commit(self, markup: str, *, normalize: bool = True, record: bool = True) -> str:
        """Sanitize ``markup`` into the surface and return the accepted snapshot."""

        self._surface.set_markup(self._sanitizer.sanitize(markup))
        if normalize:
            self._guard.normalize_structure()
        accepted = self._sanitizer.sanitize(self._surface.get_markup())
        if self._state.mode is not EditorMode.RAW_MARKUP:
            self._state.last_known_good_markup = accepted
        if record:
            self._history.record_if_changed(accepted)
        self._emit(accepted)
        return accepted

    def _emit(self, markup: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(markup)
            except Exception:
                LOGGER.exception("Content listener failed")

    def _check_alive(self, operation: str) -> bool:
        if self._destroyed:
            LOGGER.debug("Ignoring %s on a destroyed editor", operation)
            return False
        return True

    def _report(self, error: EditorError, message: str | None = None) -> None:
        LOGGER.warning("%s", error.message)
        self._notify(message or error.message, error.kind)

    def _notify(self, message: str, kind: NotificationKind) -> None:
        try:
            self._notifier.notify(message, kind)
        except Exception:
            LOGGER.debug("Notification sink failed for %r", message, exc_info=True)


def _run_integrity_check(editor: MarkupEditor) -> None:
    editor.check_integrity()


def _run_auto_persist(editor: MarkupEditor) -> None:
    editor._auto_persist()
