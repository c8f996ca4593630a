"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from inkwell.editor.surface import MemorySurface
from inkwell.utils.logging import PACKAGE_LOGGER

from tests.helpers import MemoryContentStore, RecordingNotifier


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("INKWELL_LOG_DIR", str(tmp_path_factory.mktemp("logs")))
    for name in ("INKWELL_HISTORY_LIMIT", "INKWELL_AUTO_SAVE_DELAY", "INKWELL_INTEGRITY_CHECK_DELAY", "INKWELL_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    yield
    package = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package.handlers):
        package.removeHandler(handler)
        handler.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def surface() -> MemorySurface:
    return MemorySurface()


@pytest.fixture
def store() -> MemoryContentStore:
    return MemoryContentStore()
