"""Owner-bound deferred callbacks with one slot per purpose.

Every deferred action (the post-construction integrity check, debounced
auto-persistence) is tied to its owning editor through a weak reference and
the owner's reset generation. When the callback fires it is dropped silently
if the owner has been destroyed or reset since it was scheduled.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any, Callable, Dict, Protocol

__all__ = ["DeferredTasks", "DeferredOwner", "INTEGRITY_CHECK", "AUTO_PERSIST"]

LOGGER = logging.getLogger(__name__)

INTEGRITY_CHECK = "integrity-check"
AUTO_PERSIST = "auto-persist"


class DeferredOwner(Protocol):
    @property
    def generation(self) -> int:
        ...

    @property
    def is_alive(self) -> bool:
        ...


class DeferredTasks:
    """Schedules at most one pending callback per purpose on an event loop."""

    def __init__(self, owner: DeferredOwner, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._owner_ref = weakref.ref(owner)
        self._loop = loop if loop is not None else _running_loop()
        self._handles: Dict[str, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    @property
    def available(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    def schedule(self, purpose: str, delay_ms: int, callback: Callable[[Any], None]) -> bool:
        """Replace any pending callback for ``purpose`` with ``callback``.

        ``callback`` receives the owner when it fires. Returns False when no
        event loop is available.
        """

        self.cancel(purpose)
        if not self.available:
            LOGGER.debug("No event loop; %s not scheduled", purpose)
            return False
        owner = self._owner_ref()
        if owner is None:
            return False
        assert self._loop is not None
        delay = max(0, delay_ms) / 1000.0
        self._handles[purpose] = self._loop.call_later(delay, self._fire, purpose, owner.generation, callback)
        return True

    def cancel(self, purpose: str) -> bool:
        handle = self._handles.pop(purpose, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for purpose in list(self._handles):
            self.cancel(purpose)

    def pending(self, purpose: str | None = None) -> bool:
        if purpose is None:
            return bool(self._handles)
        return purpose in self._handles

    def _fire(self, purpose: str, generation: int, callback: Callable[[Any], None]) -> None:
        self._handles.pop(purpose, None)
        owner = self._owner_ref()
        if owner is None or not owner.is_alive:
            LOGGER.debug("Dropping %s: owner is gone", purpose)
            return
        if owner.generation != generation:
            LOGGER.debug("Dropping %s: scheduled for generation %d, now %d", purpose, generation, owner.generation)
            return
        try:
            callback(owner)
        except Exception:  # pragma: no cover - callbacks report their own failures
            LOGGER.exception("Deferred %s callback failed", purpose)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
