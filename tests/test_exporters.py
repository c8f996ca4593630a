"""Tests for Markdown export."""

from __future__ import annotations

from inkwell.services.exporters import html_to_markdown


def test_blank_markup_exports_empty_string() -> None:
    assert html_to_markdown("") == ""
    assert html_to_markdown("   ") == ""


def test_headings_use_atx_style() -> None:
    result = html_to_markdown("<h1>Title</h1><h2>Sub</h2>")

    assert result.startswith("# Title")
    assert "## Sub" in result


def test_inline_formatting() -> None:
    result = html_to_markdown("<p><strong>b</strong> <em>i</em> <u>u</u> <s>s</s></p>")

    assert "**b**" in result
    assert "*i*" in result
    assert "__u__" in result
    assert "~~s~~" in result


def test_lists_use_dash_bullets() -> None:
    result = html_to_markdown("<ul><li>one</li><li>two</li></ul>")

    assert "- one" in result
    assert "- two" in result


def test_unknown_elements_keep_their_text() -> None:
    assert html_to_markdown("<p>x <mark>y</mark></p>") == "x y"


def test_underscores_are_not_escaped() -> None:
    assert html_to_markdown("<p>snake_case</p>") == "snake_case"


def test_paragraph_gaps_are_collapsed() -> None:
    result = html_to_markdown("<p>a</p><p></p><p></p><p>b</p>")

    assert "\n\n\n" not in result
    assert result.startswith("a")
    assert result.endswith("b")
