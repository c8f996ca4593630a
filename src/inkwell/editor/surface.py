"""Rich surface capability and a headless in-memory implementation.

The editor core never renders anything itself. It talks to whatever hosts the
editable area through :class:`RichSurface`; :class:`MemorySurface` keeps the
logical bits working without a display, which is what the tests and the CLI
use.
"""

from __future__ import annotations

import html
import logging
from typing import Callable, Mapping, Protocol, runtime_checkable

__all__ = ["RichSurface", "MemorySurface", "REQUIRED_SURFACE_METHODS", "CommandHandler"]

LOGGER = logging.getLogger(__name__)

REQUIRED_SURFACE_METHODS: tuple[str, ...] = ("get_markup", "set_markup", "set_editable", "apply")

CommandHandler = Callable[[str, "str | None"], "str | None"]
"""Receives ``(markup, value)`` and returns the new markup, or None on failure."""


@runtime_checkable
class RichSurface(Protocol):
    """Editable area hosting the rendered document."""

    def get_markup(self) -> str:
        ...

    def set_markup(self, markup: str) -> None:
        ...

    def set_editable(self, enabled: bool) -> None:
        ...

    def apply(self, command: str, value: str | None = None) -> bool:
        ...


def _insert_html(markup: str, value: str | None) -> str | None:
    if value is None:
        return None
    return markup + value


def _insert_text(markup: str, value: str | None) -> str | None:
    if value is None:
        return None
    return markup + html.escape(value, quote=False)


_DEFAULT_COMMANDS: Mapping[str, CommandHandler] = {
    "insertHTML": _insert_html,
    "insertText": _insert_text,
}


class MemorySurface:
    """Headless surface that stores markup as a string."""

    def __init__(
        self,
        markup: str = "",
        *,
        commands: Mapping[str, CommandHandler] | None = None,
    ) -> None:
        self._markup = markup
        self._editable = True
        self._commands: dict[str, CommandHandler] = dict(_DEFAULT_COMMANDS)
        if commands:
            self._commands.update(commands)
        self.applied: list[tuple[str, str | None]] = []

    @property
    def editable(self) -> bool:
        return self._editable

    def get_markup(self) -> str:
        return self._markup

    def set_markup(self, markup: str) -> None:
        self._markup = markup

    def set_editable(self, enabled: bool) -> None:
        self._editable = bool(enabled)

    def apply(self, command: str, value: str | None = None) -> bool:
        handler = self._commands.get(command)
        if handler is None:
            LOGGER.debug("MemorySurface has no handler for command %r", command)
            return False
        result = handler(self._markup, value)
        if result is None:
            return False
        self._markup = result
        self.applied.append((command, value))
        return True

    def type_text(self, text: str) -> None:
        """Simulate the user typing ``text`` at the end of the buffer."""

        self._markup += html.escape(text, quote=False)

    def register_command(self, command: str, handler: CommandHandler) -> None:
        self._commands[command] = handler
