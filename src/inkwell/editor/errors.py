"""Error types raised inside the editor core.

Runtime operations on :class:`~inkwell.editor.editor.MarkupEditor` never let
these escape; they are caught at the entry point and converted into a
notification whose kind is carried by the exception class. Only
:class:`CapabilityUnavailable` is raised to callers, and only during
construction.
"""

from __future__ import annotations

from typing import ClassVar

from ..services.notifications import NotificationKind

__all__ = [
    "EditorError",
    "ValidationError",
    "ParseFailure",
    "IntegrityViolation",
    "CapabilityUnavailable",
]


class EditorError(RuntimeError):
    """Base class for failures surfaced by the editor core."""

    kind: ClassVar[NotificationKind] = NotificationKind.ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(EditorError, ValueError):
    """Input to a content-affecting operation was rejected; nothing changed."""

    kind = NotificationKind.WARNING


class ParseFailure(EditorError):
    """The raw markup buffer did not parse into any element."""

    kind = NotificationKind.WARNING


class IntegrityViolation(EditorError):
    """Rendered content contains leaked serialized markup."""

    kind = NotificationKind.WARNING


class CapabilityUnavailable(EditorError):
    """A collaborator required by the editor is missing."""

    def __init__(self, capability: str, detail: str | None = None) -> None:
        message = f"Required capability '{capability}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.capability = capability
