"""Tests for vertical-align normalisation."""

from __future__ import annotations

from docline.transform.dom import get_classes
from docline.transform.vertical_align import normalize_vertical_align


class TestNormalizeVerticalAlign:
    """vertical-align styling becomes sup/sub elements."""

    def test_super(self, parse_body, options) -> None:
        body = parse_body(
            '<p>x<span class="big sup" style="vertical-align: super">2</span></p>'
        )
        assert normalize_vertical_align(body, options) is True
        sup = body.find(".//sup")
        assert sup is not None
        assert sup.text == "2"
        assert get_classes(sup) == ["big"]
        assert sup.get("style") is None
        assert body.find(".//span") is None

    def test_sub_keeps_children(self, parse_body, options) -> None:
        body = parse_body(
            '<p>H<span style="vertical-align:sub"><b>2</b></span>O</p>'
        )
        normalize_vertical_align(body, options)
        sub = body.find(".//sub")
        assert sub.find("b").text == "2"
        assert sub.tail == "O"

    def test_other_values_untouched(self, parse_body, options) -> None:
        body = parse_body('<span style="vertical-align: middle">x</span>')
        assert normalize_vertical_align(body, options) is False
        assert body.find(".//span") is not None

    def test_uppercase_declaration(self, parse_body, options) -> None:
        body = parse_body('<p>x<span style="VERTICAL-ALIGN: SUPER">2</span></p>')
        assert normalize_vertical_align(body, options) is True
        assert body.find(".//sup").text == "2"
