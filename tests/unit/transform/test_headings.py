"""Tests for heading isolation."""

from __future__ import annotations

from docline.transform.alignment import wrap_alignment
from docline.transform.dom import inner_html
from docline.transform.headings import break_around_headings
from docline.transform.options import TransformOptions


def _tags(body) -> list[str]:
    return [child.tag for child in body]


class TestBreakAroundHeadings:
    """Every heading gets its own line."""

    def test_breaks_before_and_after(self, parse_body, options) -> None:
        body = parse_body("<p>intro</p><h1>Title</h1><p>text</p>")
        assert break_around_headings(body, options) is True
        assert _tags(body) == ["p", "br", "h1", "br", "p"]

    def test_all_levels(self, parse_body, options) -> None:
        body = parse_body("".join(f"<h{n}>H{n}</h{n}>" for n in range(1, 7)))
        break_around_headings(body, options)
        assert _tags(body).count("br") == 12

    def test_paste_skips_leading_break(self, parse_body, paste_options) -> None:
        body = parse_body("<h2>Title</h2><p>text</p>")
        break_around_headings(body, paste_options)
        assert _tags(body) == ["h2", "br", "p"]

    def test_aligned_heading_only_gets_leading_break(
        self, parse_body, options
    ) -> None:
        """The alignment wrapper adds the trailing break for aligned headings."""
        body = parse_body('<h1 align="center">Title</h1><p>text</p>')
        break_around_headings(body, options)
        assert _tags(body) == ["br", "h1", "p"]

    def test_heading_in_aligned_block_gets_both_breaks(
        self, parse_body, options
    ) -> None:
        body = parse_body(
            '<div style="text-align:center">'
            '<h1 style="text-align:right">T</h1>after</div>'
        )
        break_around_headings(body, options)
        wrap_alignment(body, options)
        assert inner_html(body) == "<center><br><h1>T</h1><br>after</center><br>"

    def test_text_after_heading_is_kept(self, parse_body, options) -> None:
        body = parse_body("<div><h3>T</h3>tail text</div>")
        break_around_headings(body, options)
        div = body.find("div")
        assert [c.tag for c in div] == ["br", "h3", "br"]
        assert div[2].tail == "tail text"

    def test_no_headings(self, parse_body) -> None:
        body = parse_body("<p>nothing here</p>")
        assert break_around_headings(body, TransformOptions()) is False
        assert _tags(body) == ["p"]
