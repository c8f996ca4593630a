"""Tests for the MarkupEditor facade."""

from __future__ import annotations

from pathlib import Path

import pytest

from inkwell.editor.document_model import EditorMode
from inkwell.editor.editor import MarkupEditor
from inkwell.editor.errors import CapabilityUnavailable
from inkwell.editor.surface import MemorySurface
from inkwell.editor.text_tools import TextStats
from inkwell.services.notifications import NotificationKind

from tests.helpers import MemoryContentStore, RecordingNotifier


class _FailingStore(MemoryContentStore):
    def save(self, content: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def editor(notifier: RecordingNotifier, store: MemoryContentStore) -> MarkupEditor:
    return MarkupEditor(MemorySurface("<p>a</p>"), notifier=notifier, store=store)


def test_missing_surface_is_fatal() -> None:
    with pytest.raises(CapabilityUnavailable) as excinfo:
        MarkupEditor(None)

    assert excinfo.value.capability == "rich surface"


def test_surface_without_required_methods_is_fatal() -> None:
    class _ReadOnly:
        def get_markup(self) -> str:
            return ""

    with pytest.raises(CapabilityUnavailable, match="set_markup, set_editable, apply"):
        MarkupEditor(_ReadOnly())  # type: ignore[arg-type]


def test_construction_records_sanitized_baseline(notifier: RecordingNotifier) -> None:
    surface = MemorySurface('<p onclick="x()">hi</p><script>x()</script>')

    editor = MarkupEditor(surface, notifier=notifier)

    assert editor.content == "<p>hi</p>"
    assert surface.get_markup() == "<p>hi</p>"
    assert editor.history.history == ("<p>hi</p>",)
    assert editor.state.last_known_good_markup == "<p>hi</p>"
    assert editor.mode is EditorMode.NORMAL


def test_initial_content_replaces_surface_markup(notifier: RecordingNotifier) -> None:
    editor = MarkupEditor(MemorySurface("<p>old</p>"), notifier=notifier, initial_content="<p>new</p>")

    assert editor.content == "<p>new</p>"
    assert editor.history.history == ("<p>new</p>",)


def test_set_content_sanitizes_and_records(editor: MarkupEditor) -> None:
    assert editor.set_content('<p>b</p><img src="x" onerror="y()"/>') is True

    assert editor.content == '<p>b</p><img src="x"/>'
    assert editor.history.history == ("<p>a</p>", '<p>b</p><img src="x"/>')


def test_set_content_rejects_non_strings(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    assert editor.set_content(None) is False  # type: ignore[arg-type]

    assert notifier.last == ("Content must be a string", NotificationKind.WARNING)
    assert editor.content == "<p>a</p>"


def test_set_content_leaves_code_view(editor: MarkupEditor) -> None:
    editor.toggle_raw_markup()

    editor.set_content("<p>fresh</p>")

    assert editor.mode is EditorMode.NORMAL
    assert editor.surface.editable is True
    assert editor.content == "<p>fresh</p>"
    assert editor.state.last_known_good_markup == "<p>fresh</p>"


def test_handle_input_records_sanitized_snapshot_once(editor: MarkupEditor) -> None:
    editor.surface.set_markup('<p onmouseover="x()">typed</p>')

    editor.handle_input()
    editor.handle_input()

    assert editor.history.history == ("<p>a</p>", "<p>typed</p>")
    assert editor.state.last_known_good_markup == "<p>typed</p>"


def test_handle_input_is_ignored_in_preview(editor: MarkupEditor) -> None:
    editor.toggle_preview()
    editor.surface.set_markup("<p>sneaky</p>")

    editor.handle_input()

    assert editor.history.history == ("<p>a</p>",)


def test_paste_inserts_plain_text(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    assert editor.paste("hello & bye") is True

    assert editor.content == "<p>a</p>hello &amp; bye"
    assert editor.history.current == "<p>a</p>hello &amp; bye"
    assert notifier.last == ("Content pasted successfully", NotificationKind.SUCCESS)


def test_paste_is_rejected_outside_normal_mode(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    editor.toggle_preview()

    assert editor.paste("text") is False
    assert notifier.last == ("Paste is only available in normal mode", NotificationKind.WARNING)


def test_undo_and_redo_walk_history(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    editor.set_content("<p>b</p>")

    assert editor.undo() is True
    assert editor.content == "<p>a</p>"
    assert editor.undo() is False
    assert notifier.last == ("Nothing to undo", NotificationKind.INFO)
    assert editor.history.index == 0

    assert editor.redo() is True
    assert editor.content == "<p>b</p>"
    assert editor.redo() is False
    assert notifier.last == ("Nothing to redo", NotificationKind.INFO)
    assert editor.history.history == ("<p>a</p>", "<p>b</p>")


def test_undo_restores_rollback_target(editor: MarkupEditor) -> None:
    editor.set_content("<p>b</p>")

    editor.undo()

    assert editor.state.last_known_good_markup == "<p>a</p>"


def test_history_navigation_requires_normal_mode(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    editor.set_content("<p>b</p>")
    editor.toggle_preview()

    assert editor.undo() is False
    assert editor.content == "<p>b</p>"
    assert notifier.last == ("Undo and redo are only available in normal mode", NotificationKind.WARNING)


def test_history_limit_comes_from_settings(notifier: RecordingNotifier) -> None:
    from inkwell.services.settings import EditorSettings

    editor = MarkupEditor(MemorySurface("<p>0</p>"), notifier=notifier, settings=EditorSettings(history_limit=3))
    for number in range(1, 5):
        editor.set_content(f"<p>{number}</p>")

    assert editor.history.history == ("<p>2</p>", "<p>3</p>", "<p>4</p>")


def test_save_and_load(editor: MarkupEditor, store: MemoryContentStore, notifier: RecordingNotifier) -> None:
    editor.set_content("<p>keep me</p>")

    assert editor.save() is True
    assert store.saves == ["<p>keep me</p>"]
    assert editor.state.last_saved is not None
    assert notifier.last == ("Content saved", NotificationKind.SUCCESS)

    store.content = "<p>stored</p><script>x()</script>"
    assert editor.load() is True
    assert editor.content == "<p>stored</p>"
    assert editor.history.current == "<p>stored</p>"
    assert ("Content loaded", NotificationKind.SUCCESS) in notifier.messages


def test_load_with_empty_store(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    assert editor.load() is False
    assert notifier.last == ("No saved content found", NotificationKind.INFO)


def test_persistence_without_store_is_reported(notifier: RecordingNotifier) -> None:
    editor = MarkupEditor(MemorySurface("<p>a</p>"), notifier=notifier)

    assert editor.save() is False
    assert editor.load() is False
    assert notifier.texts(NotificationKind.ERROR) == ["Persistence is not configured"] * 2


def test_failed_save_is_reported(notifier: RecordingNotifier) -> None:
    editor = MarkupEditor(MemorySurface("<p>a</p>"), notifier=notifier, store=_FailingStore())

    assert editor.save() is False
    assert notifier.last == ("Save failed", NotificationKind.ERROR)
    assert editor.state.last_saved is None


def test_find_counts_visible_text_only(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    editor.set_content('<p>Cat cat <a href="cat.html">CAT</a></p>')

    assert editor.find("cat") == 3
    assert notifier.last == ("Found 3 match(es)", NotificationKind.INFO)
    assert editor.find("dog") == 0
    assert notifier.last == ("No matches found", NotificationKind.INFO)


def test_find_rejects_empty_needle(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    assert editor.find("") == 0
    assert notifier.last == ("Search text must be a non-empty string", NotificationKind.WARNING)


def test_replace_rewrites_text_nodes_and_records(editor: MarkupEditor, notifier: RecordingNotifier) -> None:
    editor.set_content('<p>Cat cat <a href="cat.html">CAT</a></p>')

    assert editor.replace("cat", "dog") == 3

    assert editor.content == '<p>dog dog <a href="cat.html">dog</a></p>'
    assert editor.history.current == editor.content
    assert notifier.last == ("Replaced 3 match(es)", NotificationKind.SUCCESS)


def test_replace_without_matches_keeps_history(editor: MarkupEditor) -> None:
    assert editor.replace("zebra", "horse") == 0
    assert editor.history.history == ("<p>a</p>",)


def test_stats(editor: MarkupEditor) -> None:
    editor.set_content("<h1>Title</h1><p>one two</p><p>three<br/>four</p>")

    assert editor.stats() == TextStats(words=5, lines=4, characters=24)


def test_import_markdown_file(editor: MarkupEditor, notifier: RecordingNotifier, tmp_path: Path) -> None:
    source = tmp_path / "notes.md"
    source.write_text("---\ntitle: Notes\n---\n# Heading\n\nSome *text*.\n", encoding="utf-8")

    assert editor.import_file(source) is True

    assert "<h1>Heading</h1>" in editor.content
    assert "<em>text</em>" in editor.content
    assert "title: Notes" not in editor.content
    assert notifier.last == ("File imported successfully", NotificationKind.SUCCESS)


def test_import_reports_unsupported_files(editor: MarkupEditor, notifier: RecordingNotifier, tmp_path: Path) -> None:
    source = tmp_path / "data.xyz"
    source.write_text("?", encoding="utf-8")

    assert editor.import_file(source) is False
    assert editor.import_file(tmp_path / "missing.txt") is False

    errors = notifier.texts(NotificationKind.ERROR)
    assert errors[0].startswith("Import failed: No import handler registered")
    assert errors[1].startswith("File not found")
    assert editor.content == "<p>a</p>"


def test_export_markdown(editor: MarkupEditor) -> None:
    editor.set_content("<h1>Title</h1><p>Some <strong>bold</strong> and <u>under</u></p><ol><li>one</li><li>two</li></ol>")

    markdown = editor.export_markdown()

    assert markdown.startswith("# Title")
    assert "Some **bold** and __under__" in markdown
    assert "1. one" in markdown
    assert "2. two" in markdown


def test_content_listeners_receive_accepted_markup(editor: MarkupEditor) -> None:
    seen: list[str] = []
    editor.add_content_listener(seen.append)

    editor.set_content("<p>b</p><script>x()</script>")

    assert seen == ["<p>b</p>"]


def test_destroy_is_idempotent_and_disables_operations(editor: MarkupEditor) -> None:
    editor.destroy()
    editor.destroy()

    assert editor.is_alive is False
    assert editor.set_content("<p>late</p>") is False
    assert editor.undo() is False
    assert editor.content == "<p>a</p>"


def test_typed_text_is_recorded_on_input(editor: MarkupEditor) -> None:
    editor.surface.type_text("b & c")

    editor.handle_input()

    assert editor.history.current == "<p>a</p>b &amp; c"


def test_registered_surface_command_is_recorded(editor: MarkupEditor) -> None:
    editor.surface.register_command("bold", lambda markup, _value: markup.replace("a", "<b>a</b>"))

    assert editor.apply_format("bold") is True
    assert editor.history.history == ("<p>a</p>", "<p><b>a</b></p>")
    assert editor.surface.applied[-1] == ("bold", None)
