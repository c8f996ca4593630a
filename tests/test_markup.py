"""Tests for the tolerant markup parser."""

from __future__ import annotations

from bs4 import Tag

from inkwell.editor.markup import MarkupParser


def test_parse_counts_nodes_and_elements() -> None:
    parsed = MarkupParser().parse("<p>Hello <b>world</b></p>")

    assert parsed.element_count == 2
    assert parsed.node_count == 4
    assert parsed.has_elements


def test_plain_text_has_no_elements() -> None:
    parsed = MarkupParser().parse("just words < and > symbols")

    assert not parsed.has_elements


def test_parse_accepts_none() -> None:
    parsed = MarkupParser().parse(None)  # type: ignore[arg-type]

    assert parsed.node_count == 0


def test_serialize_closes_unclosed_elements() -> None:
    parser = MarkupParser()

    assert parser.serialize(parser.parse("<p>open <i>italic").tree) == "<p>open <i>italic</i></p>"


def test_text_of_decodes_entities() -> None:
    assert MarkupParser().text_of("&lt;p&gt;hi&lt;/p&gt;") == "<p>hi</p>"


def test_fragment_detaches_top_level_nodes() -> None:
    nodes = MarkupParser().fragment('<span style="color: red">Hi</span> tail')

    assert isinstance(nodes[0], Tag)
    assert nodes[0].name == "span"
    assert str(nodes[1]) == " tail"
    assert all(node.parent is None for node in nodes)
