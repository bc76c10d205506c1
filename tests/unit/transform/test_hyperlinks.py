"""Tests for hyperlink placeholder substitution."""

from __future__ import annotations

import pytest

from docline.transform.hyperlinks import normalise_href, replace_hyperlinks
from docline.transform.marker_constants import ZWSP


class TestNormaliseHref:
    """Scheme defaulting."""

    @pytest.mark.parametrize(
        "href",
        [
            "http://a.com",
            "HTTPS://a.com",
            "mailto:x@y.z",
            "ftp:host",
            "file:x",
            "#top",
            "/path",
        ],
    )
    def test_known_schemes_kept(self, href: str) -> None:
        assert normalise_href(href) == href

    def test_bare_host_gets_http(self) -> None:
        assert normalise_href("  example.com/x ") == "http://example.com/x"

    def test_blank(self) -> None:
        assert normalise_href("   ") is None


class TestReplaceHyperlinks:
    """Anchors become ZWSP-flanked hyperlink spans."""

    def test_anchor_replaced(self, parse_body, options) -> None:
        body = parse_body('<p>See <a href="example.com">the site</a> now</p>')
        assert replace_hyperlinks(body, options) is True

        paragraph = body.find("p")
        span = paragraph.find("span")
        assert paragraph.find("a") is None
        assert span.get("class") == "hyperlink hyperlink-http%3A%2F%2Fexample.com"
        assert span.text == "the site"
        assert paragraph.text == "See " + ZWSP
        assert span.tail == ZWSP + " now"

    def test_nested_markup_flattened_to_text(self, parse_body, options) -> None:
        body = parse_body('<a href="http://a.com"><b>bold</b> link</a>')
        replace_hyperlinks(body, options)
        span = body.find(".//span")
        assert span.text == "bold link"
        assert len(span) == 0

    def test_empty_anchor_uses_href(self, parse_body, options) -> None:
        body = parse_body('<p><a href="mailto:x@y.z"></a></p>')
        replace_hyperlinks(body, options)
        span = body.find(".//span")
        assert span.text == "mailto:x@y.z"
        assert span.get("class") == "hyperlink hyperlink-mailto%3Ax%40y.z"

    def test_blank_href_untouched(self, parse_body, options) -> None:
        body = parse_body('<a href="  ">x</a><a name="anchor">y</a>')
        assert replace_hyperlinks(body, options) is False
        assert len(body.findall(".//a")) == 2
