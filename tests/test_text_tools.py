"""Tests for text extraction, statistics and search helpers."""

from __future__ import annotations

import pytest

from inkwell.editor.text_tools import (
    TextStats,
    count_lines,
    count_words,
    extract_text,
    find_matches,
    replace_text,
    text_stats,
)


def test_extract_text_turns_blocks_and_breaks_into_lines() -> None:
    markup = "<h1>T</h1><p>a<br/>b</p><div>c</div>"

    assert extract_text(markup) == "T\na\nb\nc"


def test_extract_text_skips_script_and_style() -> None:
    assert extract_text("<p>a</p><script>x()</script><style>p{}</style>") == "a"


def test_extract_text_of_empty_markup() -> None:
    assert extract_text("") == ""
    assert extract_text("<p></p>") == ""


def test_counters_ignore_blank_lines() -> None:
    assert count_words("  one two\nthree  ") == 3
    assert count_lines("one\n\n   \ntwo") == 2


def test_text_stats_and_status_line() -> None:
    stats = text_stats("<h1>T</h1><p>a<br/>b</p><div>c</div>")

    assert stats == TextStats(words=4, lines=4, characters=7)
    assert stats.format_status() == "Words: 4 | Lines: 4"


def test_find_matches_is_case_insensitive_and_ignores_attributes() -> None:
    markup = '<p>Cat <b>cat</b></p><p title="cat">x</p>'

    assert find_matches(markup, "cat") == 2
    assert find_matches(markup, "dog") == 0


def test_find_matches_rejects_empty_needle() -> None:
    with pytest.raises(ValueError, match="non-empty"):
        find_matches("<p>x</p>", "")


def test_replace_text_only_touches_text_nodes() -> None:
    markup, count = replace_text('<p class="cat">Cat and CAT</p>', "cat", "dog")

    assert count == 2
    assert markup == '<p class="cat">dog and dog</p>'


def test_replacement_is_literal() -> None:
    markup, count = replace_text("<p>a.b</p>", ".", r"\1")

    assert count == 1
    assert markup == r"<p>a\1b</p>"


def test_replace_without_match_returns_original_markup() -> None:
    assert replace_text("<P>x</P>", "y", "z") == ("<P>x</P>", 0)
