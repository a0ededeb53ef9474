#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_units.py
"""Unit tests for the HTML/CSS value parsers.

Tests cover:
- Length parsing and conversion to twips, pixels and eighth-points
- Color parsing (hex, short hex, rgb(), names)
- Border shorthand and per-side overrides
- Margin shorthand expansion
- Inline style and attribute access
- Alignment and font size mapping

"""

import pytest

from docxmd.html2docx.units import (
    HtmlAttributes,
    HtmlColor,
    Margin,
    SideBorder,
    StyleDeclarations,
    Unit,
    UnitMetric,
    parse_alignment,
    parse_font_size,
)


@pytest.mark.unit
class TestUnit:
    """Tests for length parsing."""

    def test_bare_number_defaults_to_pixels(self):
        unit = Unit.parse("96")
        assert unit.metric is UnitMetric.PIXEL
        assert unit.value == 96.0

    def test_explicit_units(self):
        assert Unit.parse("12pt").metric is UnitMetric.POINT
        assert Unit.parse("2.5cm").metric is UnitMetric.CENTIMETER
        assert Unit.parse("50%").metric is UnitMetric.PERCENT
        assert Unit.parse("AUTO").metric is UnitMetric.AUTO

    def test_invalid_values(self):
        assert not Unit.parse("wide").is_valid
        assert not Unit.parse(None).is_valid
        assert not Unit.parse("").is_valid

    def test_conversions(self):
        assert Unit.parse("1in").value_in_dxa == 1440
        assert Unit.parse("96px").value_in_dxa == 1440
        assert Unit.parse("12pt").value_in_eighth_points == 96
        assert Unit.parse("72pt").value_in_px == 96

    def test_percent_and_auto_are_not_fixed(self):
        assert not Unit.parse("50%").is_fixed
        assert not Unit.parse("auto").is_fixed
        assert Unit.parse("3mm").is_fixed

    def test_css_lengths_require_a_unit(self):
        styles = StyleDeclarations.parse("width: 100")
        assert not styles.get_as_unit("width").is_valid


@pytest.mark.unit
class TestHtmlColor:
    """Tests for color parsing."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("#FF0000", "FF0000"),
            ("#0f0", "00FF00"),
            ("rgb(0, 0, 255)", "0000FF"),
            ("rgba(1, 2, 3, 0.5)", "010203"),
            ("Navy", "000080"),
        ],
    )
    def test_parse(self, text, expected):
        assert HtmlColor.parse(text).to_hex() == expected

    def test_invalid_colors(self):
        assert HtmlColor.parse("#12345") is None
        assert HtmlColor.parse("not-a-color") is None
        assert HtmlColor.parse(None) is None


@pytest.mark.unit
class TestBorders:
    """Tests for border shorthand parsing."""

    def test_shorthand_any_order(self):
        border = SideBorder.parse("solid #ccc 2px")
        assert border.style == "single"
        assert border.width.value == 2.0
        assert border.color.to_hex() == "CCCCCC"

    def test_width_without_style_implies_single(self):
        assert SideBorder.parse("1px").style == "single"

    def test_ooxml_attributes(self):
        attrs = SideBorder.parse("1pt dashed red").ooxml_attributes()
        assert attrs == {"val": "dashed", "sz": "8", "space": "0", "color": "FF0000"}

    def test_none_border_has_only_val(self):
        assert SideBorder.parse("none").ooxml_attributes() == {"val": "none"}

    def test_side_overrides_shorthand(self):
        border = StyleDeclarations.parse("border: 1px solid black; border-left: 3px double blue").get_as_border()
        assert border.top.style == "single"
        assert border.left.style == "double"
        assert border.left.color.to_hex() == "0000FF"

    def test_empty_border(self):
        assert StyleDeclarations.parse("color: red").get_as_border().is_empty


@pytest.mark.unit
class TestMargin:
    """Tests for margin and padding shorthands."""

    def test_one_value(self):
        margin = Margin.parse("4px")
        assert margin.top == margin.right == margin.bottom == margin.left == Unit(UnitMetric.PIXEL, 4.0)

    def test_two_values(self):
        margin = Margin.parse("1px 2px")
        assert margin.top.value == 1.0 and margin.bottom.value == 1.0
        assert margin.left.value == 2.0 and margin.right.value == 2.0

    def test_three_values(self):
        margin = Margin.parse("1px 2px 3px")
        assert (margin.top.value, margin.right.value, margin.bottom.value, margin.left.value) == (1, 2, 3, 2)

    def test_side_property_wins(self):
        margin = StyleDeclarations.parse("margin: 0 auto; margin-left: 10px").get_as_margin("margin")
        assert margin.left.value == 10.0
        assert margin.right.metric is UnitMetric.AUTO


@pytest.mark.unit
class TestDeclarationsAndAttributes:
    """Tests for inline style and attribute access."""

    def test_style_names_are_case_insensitive(self):
        styles = StyleDeclarations.parse("COLOR: red; text-align : center !important")
        assert styles["color"] == "red"
        assert styles["text-align"] == "center"
        assert len(styles) == 2

    def test_malformed_declarations_ignored(self):
        assert len(StyleDeclarations.parse("color; : red; width:")) == 0

    def test_attribute_helpers(self):
        attributes = HtmlAttributes({"colspan": "3x", "class": "note  wide", "width": "120"})
        assert attributes.get_as_int("colspan") == 3
        assert attributes.get_as_classes() == ["note", "wide"]
        assert attributes.get_as_unit("width").value_in_px == 120
        assert attributes.get_as_int("rowspan") is None
        assert "class" in attributes


@pytest.mark.unit
class TestAlignmentAndFontSize:
    """Tests for alignment and font size mapping."""

    def test_alignment(self):
        assert parse_alignment("Justify") == "both"
        assert parse_alignment("end") == "right"
        assert parse_alignment("middle") is None
        assert parse_alignment(None) is None

    def test_font_size(self):
        assert parse_font_size("x-large") == 24.0
        assert parse_font_size("3") == 12.0
        assert parse_font_size("16px") == 12.0
        assert parse_font_size("-2pt") is None
