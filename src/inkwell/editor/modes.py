"""State machine over the Normal, Preview and RawMarkup editing modes.

Legal transitions::

    Normal  <-> Preview      (surface editability toggled, content untouched)
    Normal   -> RawMarkup    (sanitized markup shown as literal editable text)
    RawMarkup -> Normal      (literal text parsed back into rendered content)

Anything else (Preview -> RawMarkup, RawMarkup -> Preview) is rejected with a
warning and leaves the state as it was.
"""

from __future__ import annotations

import html
import logging
from typing import Protocol

from ..services.notifications import NotificationKind, NotificationSink
from .document_model import EditorMode, EditorState
from .errors import ParseFailure, ValidationError
from .markup import MarkupParser
from .sanitizer import ContentSanitizer
from .surface import RichSurface

__all__ = ["ModeController", "ContentCommitter", "escape_markup"]

LOGGER = logging.getLogger(__name__)

_MODE_LABELS: dict[EditorMode, str] = {
    EditorMode.NORMAL: "normal mode",
    EditorMode.PREVIEW: "preview mode",
    EditorMode.RAW_MARKUP: "code view",
}


class ContentCommitter(Protocol):
    """Accepts markup into the document and returns the accepted snapshot."""

    def __call__(self, markup: str, *, normalize: bool = True, record: bool = True) -> str:
        ...


def escape_markup(markup: str) -> str:
    """Return ``markup`` encoded so the surface shows it as literal text."""

    return html.escape(markup, quote=False)


class ModeController:
    """Governs what the surface buffer represents and how it is serialized."""

    def __init__(
        self,
        surface: RichSurface,
        state: EditorState,
        *,
        parser: MarkupParser,
        sanitizer: ContentSanitizer,
        notifier: NotificationSink,
        commit: ContentCommitter,
    ) -> None:
        self._surface = surface
        self._state = state
        self._parser = parser
        self._sanitizer = sanitizer
        self._notifier = notifier
        self._commit = commit
        self._entry_markup: str | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def mode(self) -> EditorMode:
        return self._state.mode

    @property
    def can_mutate(self) -> bool:
        """True when content-affecting commands are legal."""

        return self._state.mode is EditorMode.NORMAL

    def raw_buffer(self) -> str:
        """Return the literal text currently shown in the raw markup view."""

        return self._parser.text_of(self._surface.get_markup())

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------
    def toggle_preview(self) -> EditorMode:
        """Flip between Normal and Preview."""

        current = self._state.mode
        if current is EditorMode.RAW_MARKUP:
            self._notify("Leave code view before toggling preview", NotificationKind.WARNING)
            return current
        entering = current is EditorMode.NORMAL
        try:
            self._surface.set_editable(not entering)
        except Exception:
            LOGGER.exception("Preview toggle failed")
            self._restore_editability()
            self._notify("Preview toggle failed", NotificationKind.ERROR)
            return self._state.mode
        self._state.mode = EditorMode.PREVIEW if entering else EditorMode.NORMAL
        message = "Preview mode enabled" if entering else "Preview mode disabled"
        self._notify(message, NotificationKind.INFO)
        return self._state.mode

    # ------------------------------------------------------------------
    # Raw markup view
    # ------------------------------------------------------------------
    def toggle_raw_markup(self) -> EditorMode:
        if self._state.mode is EditorMode.RAW_MARKUP:
            self.exit_raw_markup()
        else:
            self.enter_raw_markup()
        return self._state.mode

    def enter_raw_markup(self) -> bool:
        current = self._state.mode
        if current is EditorMode.RAW_MARKUP:
            return True
        if current is not EditorMode.NORMAL:
            self._notify(f"Code view is unavailable in {_MODE_LABELS[current]}", NotificationKind.WARNING)
            return False
        original: str | None = None
        try:
            original = self._surface.get_markup()
            markup = self._sanitizer.sanitize(original)
            self._surface.set_markup(escape_markup(markup))
        except Exception:
            LOGGER.exception("Failed to enter raw markup view")
            if original is not None:
                self._try_set_markup(original)
            self._notify("Failed to toggle code view", NotificationKind.ERROR)
            return False
        self._state.last_known_good_markup = markup
        self._entry_markup = markup
        self._state.mode = EditorMode.RAW_MARKUP
        self._notify("Code view enabled - edit HTML directly", NotificationKind.INFO)
        return True

    def handle_raw_edit(self, text: str | None = None) -> None:
        """Track an edit of the raw buffer.

        When ``text`` is given it replaces the buffer. Only edits that parse
        into at least one element become the new rollback target, so the
        rollback target always holds valid sanitized markup.
        """

        if self._state.mode is not EditorMode.RAW_MARKUP:
            raise ValidationError("Raw markup edits are only accepted in code view")
        if text is not None:
            if not isinstance(text, str):
                raise ValidationError("Raw markup must be a string")
            self._surface.set_markup(escape_markup(text))
        else:
            text = self.raw_buffer()
        if self._parser.parse(text).has_elements:
            self._state.last_known_good_markup = self._sanitizer.sanitize(text)

    def exit_raw_markup(self) -> bool:
        """Parse the raw buffer back into rendered content.

        Returns True when the buffer was accepted and False when the rollback
        target had to be restored (or the transition failed outright).
        """

        if self._state.mode is not EditorMode.RAW_MARKUP:
            return False
        try:
            candidate = self.raw_buffer()
            if candidate == self._entry_markup:
                self._commit(candidate, normalize=False)
                self._leave_raw_markup()
                self._notify("Code view disabled", NotificationKind.INFO)
                return True
            if self._parser.parse(candidate).has_elements:
                accepted = self._commit(candidate)
                self._leave_raw_markup()
                self._state.last_known_good_markup = accepted
                self._notify("HTML updated successfully", NotificationKind.SUCCESS)
                return True
            failure = ParseFailure("Invalid HTML - restored original content")
            LOGGER.warning("Raw markup buffer has no elements; restoring the rollback target")
            self._commit(self._state.last_known_good_markup, normalize=False)
            self._leave_raw_markup()
            self._notify(failure.message, failure.kind)
            return False
        except Exception:
            LOGGER.exception("Failed to leave raw markup view")
            self._recover_from_failed_exit()
            self._notify("Failed to toggle code view", NotificationKind.ERROR)
            return False

    def discard_raw_markup(self) -> None:
        """Leave the raw markup view without reading its buffer back."""

        if self._state.mode is EditorMode.RAW_MARKUP:
            self._leave_raw_markup()

    def force_normal(self) -> None:
        """Clear every mode flag and make the surface editable again."""

        self._entry_markup = None
        self._state.mode = EditorMode.NORMAL
        self._surface.set_editable(True)

    # ------------------------------------------------------------------
    # Formatting commands
    # ------------------------------------------------------------------
    def apply(self, command: str, value: str | None = None) -> bool:
        """Forward a formatting command to the surface when legal."""

        current = self._state.mode
        if current is not EditorMode.NORMAL:
            self._notify(f"Formatting is unavailable in {_MODE_LABELS[current]}", NotificationKind.WARNING)
            return False
        if not isinstance(command, str) or not command.strip():
            raise ValidationError("Formatting command name must be a non-empty string")
        try:
            success = bool(self._surface.apply(command, value))
        except Exception:
            LOGGER.exception("Format command %r failed", command)
            self._notify("Formatting failed", NotificationKind.ERROR)
            return False
        if not success:
            LOGGER.warning("Command '%s' failed to execute", command)
        return success

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _leave_raw_markup(self) -> None:
        self._entry_markup = None
        self._state.mode = EditorMode.NORMAL

    def _recover_from_failed_exit(self) -> None:
        # Either the rendered rollback target is back in place and we are in
        # Normal, or the literal buffer stays and we remain in RawMarkup.
        fallback = self._state.last_known_good_markup
        if self._try_set_markup(fallback):
            self._leave_raw_markup()

    def _restore_editability(self) -> None:
        try:
            self._surface.set_editable(self._state.mode is EditorMode.NORMAL)
        except Exception:
            LOGGER.debug("Unable to restore surface editability", exc_info=True)

    def _try_set_markup(self, markup: str) -> bool:
        try:
            self._surface.set_markup(markup)
        except Exception:
            LOGGER.debug("Unable to restore surface markup", exc_info=True)
            return False
        return True

    def _notify(self, message: str, kind: NotificationKind) -> None:
        try:
            self._notifier.notify(message, kind)
        except Exception:
            LOGGER.debug("Notification sink failed for %r", message, exc_info=True)
