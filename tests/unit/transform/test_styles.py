"""Tests for colour and font-size quantisation."""

from __future__ import annotations

import pytest

from docline.transform.dom import get_classes
from docline.transform.styles import (
    nearest_color,
    nearest_font_size,
    parse_color,
    parse_font_size,
    quantize_styles,
)


class TestColors:
    """Colour parsing and nearest-palette matching."""

    @pytest.mark.parametrize(
        ("value", "rgb"),
        [
            ("rgb(250,0,0)", (250, 0, 0)),
            ("rgb( 250 , 0 , 0 )", (250, 0, 0)),
            ("#fa0000", (250, 0, 0)),
            ("FA0000", (250, 0, 0)),
            ("#f00", (255, 0, 0)),
            ("Blue", (0, 0, 255)),
        ],
    )
    def test_parse(self, value: str, rgb: tuple[int, int, int]) -> None:
        assert parse_color(value) == rgb

    @pytest.mark.parametrize("value", ["", "transparent", "hsl(0, 100%, 50%)", None])
    def test_unparseable(self, value: str | None) -> None:
        assert parse_color(value) is None

    def test_equivalent_notations_agree(self) -> None:
        """rgb() and hex spellings of one colour pick the same entry, every time."""
        picks = {
            nearest_color(parse_color(value))
            for value in ["rgb(250,0,0)", "#fa0000"] * 5
        }
        assert picks == {"red"}

    def test_nearest(self) -> None:
        assert nearest_color((255, 200, 0)) == "orange"
        assert nearest_color((10, 10, 10)) == "black"
        assert nearest_color((0, 120, 10)) == "green"

    def test_tie_goes_to_earlier_entry(self) -> None:
        # Equidistant from black (0,0,0) and blue (0,0,255)
        assert nearest_color((0, 0, 127.5)) == "black"  # type: ignore[arg-type]


class TestFontSizes:
    """Font-size parsing and nearest-palette matching."""

    @pytest.mark.parametrize(
        ("value", "px"),
        [("12", 12), ("12px", 12), ("12.5px", 13), ("9pt", 12), ("18PT", 24)],
    )
    def test_parse(self, value: str, px: int) -> None:
        assert parse_font_size(value) == px

    @pytest.mark.parametrize("value", ["", "large", "120%", "1.2em", "0px"])
    def test_unparseable(self, value: str) -> None:
        assert parse_font_size(value) is None

    def test_nearest(self) -> None:
        assert nearest_font_size(31) == 30
        assert nearest_font_size(100) == 40
        assert nearest_font_size(1) == 8

    def test_tie_goes_to_smaller(self) -> None:
        assert nearest_font_size(13) == 12
        assert nearest_font_size(15) == 14


class TestQuantizeStyles:
    """Inline styling becomes class tokens."""

    def test_color_style(self, parse_body, options) -> None:
        body = parse_body('<span style="color: rgb(250,0,0)">x</span>')
        assert quantize_styles(body, options) is True
        span = body.find("span")
        assert get_classes(span) == ["color:red"]
        assert span.get("style") is None

    def test_font_color_attribute(self, parse_body, options) -> None:
        body = parse_body('<font color="#fa0000">x</font>')
        quantize_styles(body, options)
        font = body.find("font")
        assert get_classes(font) == ["color:red"]
        assert font.get("color") is None

    def test_font_size(self, parse_body, options) -> None:
        body = parse_body('<span style="font-size: 21px; font-weight: bold">x</span>')
        quantize_styles(body, options)
        span = body.find("span")
        assert get_classes(span) == ["font-size:20"]
        assert span.get("style") == "font-weight: bold"

    def test_defaults_emit_no_token(self, parse_body, options) -> None:
        body = parse_body('<span style="color: #020202; font-size: 14px">x</span>')
        assert quantize_styles(body, options) is True
        span = body.find("span")
        assert span.get("class") is None
        assert span.get("style") is None

    def test_existing_token_replaced(self, parse_body, options) -> None:
        body = parse_body('<span class="keep color:blue" style="color: red">x</span>')
        quantize_styles(body, options)
        assert get_classes(body.find("span")) == ["keep", "color:red"]

    def test_unparseable_left_alone(self, parse_body, options) -> None:
        body = parse_body('<span style="color: inherit; font-size: 120%">x</span>')
        assert quantize_styles(body, options) is False
        assert body.find("span").get("style") == "color: inherit; font-size: 120%"

    def test_background_color_ignored(self, parse_body, options) -> None:
        body = parse_body('<span style="background-color: red">x</span>')
        assert quantize_styles(body, options) is False

    def test_uppercase_declarations(self, parse_body, options) -> None:
        body = parse_body('<span style="COLOR: Red; Font-Size: 21px">x</span>')
        assert quantize_styles(body, options) is True
        span = body.find("span")
        assert get_classes(span) == ["color:red", "font-size:20"]
        assert span.get("style") is None

    def test_superscript_keeps_size(self, parse_body, options) -> None:
        body = parse_body('<sup style="font-size: 20px; color: blue">2</sup>')
        quantize_styles(body, options)
        sup = body.find(".//sup")
        assert get_classes(sup) == ["color:blue"]
        assert sup.get("style") == "font-size: 20px"
