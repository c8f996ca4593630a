"""Tests for the JSON-backed content store."""

from __future__ import annotations

import json
from pathlib import Path

from inkwell.editor.editor import MarkupEditor
from inkwell.editor.surface import MemorySurface
from inkwell.services.persistence import FileContentStore

from tests.helpers import RecordingNotifier


def test_load_returns_none_when_missing(tmp_path: Path) -> None:
    assert FileContentStore(tmp_path / "content.json").load() is None


def test_save_writes_versioned_payload(tmp_path: Path) -> None:
    path = tmp_path / "state" / "content.json"
    store = FileContentStore(path)

    store.save("<p>hello</p>")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["content"] == "<p>hello</p>"
    assert "saved_at" in payload
    assert store.load() == "<p>hello</p>"


def test_corrupt_payload_loads_as_missing(tmp_path: Path) -> None:
    path = tmp_path / "content.json"
    path.write_text("{broken", encoding="utf-8")

    assert FileContentStore(path).load() is None


def test_non_string_content_loads_as_missing(tmp_path: Path) -> None:
    path = tmp_path / "content.json"
    path.write_text(json.dumps({"content": 42}), encoding="utf-8")

    assert FileContentStore(path).load() is None


def test_editor_round_trips_through_file_store(tmp_path: Path) -> None:
    store = FileContentStore(tmp_path / "content.json")
    writer = MarkupEditor(MemorySurface("<p>kept</p>"), notifier=RecordingNotifier(), store=store)
    assert writer.save() is True
    writer.destroy()

    notifier = RecordingNotifier()
    reader = MarkupEditor(MemorySurface(), notifier=notifier, store=store)

    assert reader.load() is True
    assert reader.get_content() == "<p>kept</p>"
    assert ("Content loaded" in notifier.texts())
