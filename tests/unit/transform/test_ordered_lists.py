"""Tests for ordered-list flattening."""

from __future__ import annotations

from docline.transform.ordered_lists import (
    flatten_ordered_lists,
    list_start,
    outermost_descendants,
)


def _lines(body) -> list[str]:
    return [div.text_content() for div in body.findall("div")]


class TestListStart:
    """``start`` parsing."""

    def test_default(self, parse_body) -> None:
        assert list_start(parse_body("<ol><li>a</li></ol>").find("ol")) == 1

    def test_numeric(self, parse_body) -> None:
        assert list_start(parse_body('<ol start="4"><li>a</li></ol>').find("ol")) == 4

    def test_garbage_is_one(self, parse_body) -> None:
        body = parse_body('<ol start="abc"><li>a</li></ol>')
        assert list_start(body.find("ol")) == 1


class TestFlattenOrderedLists:
    """Each item becomes a numbered line."""

    def test_simple_list(self, parse_body, options) -> None:
        body = parse_body("<ol><li>one</li><li>two</li></ol>")
        assert flatten_ordered_lists(body, options) is True
        assert body.find("ol") is None
        assert _lines(body) == ["1. one", "2. two"]

    def test_sibling_lists_restart(self, parse_body, options) -> None:
        """A second top-level list numbers from 1 again."""
        body = parse_body(
            "<ol><li>a</li><li>b</li><li>c</li></ol>"
            "<p>between</p>"
            "<ol><li>d</li><li>e</li></ol>"
        )
        flatten_ordered_lists(body, options)
        assert _lines(body) == ["1. a", "2. b", "3. c", "1. d", "2. e"]

    def test_start_attribute(self, parse_body, options) -> None:
        body = parse_body('<ol start="7"><li>a</li><li>b</li></ol>')
        flatten_ordered_lists(body, options)
        assert _lines(body) == ["7. a", "8. b"]

    def test_nested_list_numbers_independently(self, parse_body, options) -> None:
        body = parse_body(
            "<ol><li>one<ol><li>sub a</li><li>sub b</li></ol></li>"
            "<li>two</li></ol>"
        )
        flatten_ordered_lists(body, options)
        assert _lines(body) == ["1. one", "1. sub a", "2. sub b", "2. two"]

    def test_nested_lines_are_indented(self, parse_body, options) -> None:
        body = parse_body(
            "<ol><li>top<ol><li>mid<ol><li>deep</li></ol></li></ol></li></ol>"
        )
        flatten_ordered_lists(body, options)
        styles = [div.get("style") for div in body.findall("div")]
        assert styles == [None, "margin-left: 1.5em", "margin-left: 3em"]

    def test_sole_paragraph_is_unwrapped(self, parse_body, options) -> None:
        body = parse_body("<ol><li><p>para <b>bold</b></p></li></ol>")
        flatten_ordered_lists(body, options)
        line = body.find("div")
        assert line.find("p") is None
        assert line.find("b") is not None
        assert line.text_content() == "1. para bold"

    def test_number_prefix_is_a_span(self, parse_body, options) -> None:
        body = parse_body("<ol><li>x</li></ol>")
        flatten_ordered_lists(body, options)
        prefix = body.find("div")[0]
        assert prefix.tag == "span"
        assert prefix.text == "1. "

    def test_list_without_items_is_left_alone(self, parse_body, options) -> None:
        body = parse_body("<ol></ol><p>x</p>")
        assert flatten_ordered_lists(body, options) is False
        assert body.find("ol") is not None

    def test_text_after_list_is_kept(self, parse_body, options) -> None:
        body = parse_body("<div><ol><li>a</li></ol>after</div>")
        flatten_ordered_lists(body, options)
        outer = body.find("div")
        assert outer[0].text_content() == "1. a"
        assert outer[0].tail == "after"


class TestOutermostDescendants:
    """Only lists not nested in another list are returned."""

    def test_skips_nested(self, parse_body) -> None:
        body = parse_body("<ol><li>a<ol><li>b</li></ol></li></ol><ol></ol>")
        found = outermost_descendants(body, "ol")
        assert len(found) == 2
        assert all(node.getparent() is body for node in found)
