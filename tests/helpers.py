"""Shared test helpers and stub classes.

This module contains reusable test stubs that are used across multiple test files.
Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

from typing import Any, Callable

from inkwell.services.notifications import NotificationKind


class RecordingNotifier:
    """Notification sink that keeps every message for later assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, NotificationKind]] = []

    def notify(self, message: str, kind: NotificationKind) -> None:
        self.messages.append((message, kind))

    def texts(self, kind: NotificationKind | None = None) -> list[str]:
        return [message for message, item_kind in self.messages if kind is None or item_kind is kind]

    @property
    def last(self) -> tuple[str, NotificationKind] | None:
        return self.messages[-1] if self.messages else None

    def clear(self) -> None:
        self.messages.clear()


class MemoryContentStore:
    """In-memory :class:`~inkwell.services.persistence.ContentStore`."""

    def __init__(self, content: str | None = None) -> None:
        self.content = content
        self.saves: list[str] = []

    def save(self, content: str) -> None:
        self.content = content
        self.saves.append(content)

    def load(self) -> str | None:
        return self.content


class FakeHandle:
    def __init__(self, delay: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Minimal stand-in for ``asyncio`` timers; callbacks fire only on demand.

    Example:
        loop = FakeLoop()
        editor = MarkupEditor(MemorySurface(), loop=loop)
        loop.run_pending()
    """

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.closed = False

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(delay, callback, args)
        self.handles.append(handle)
        return handle

    def is_closed(self) -> bool:
        return self.closed

    def pending(self) -> list[FakeHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def run_pending(self) -> int:
        ready = self.pending()
        self.handles = []
        for handle in ready:
            handle.callback(*handle.args)
        return len(ready)
