#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/units.py
"""Typed values parsed from HTML attributes and inline CSS.

Every tag handler reads lengths, colors, borders and margins through this
module so that unit conversion (px, pt, cm, em, %) to the twips and EMUs of
WordprocessingML lives in one place.

"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from docxmd.constants import PIXELS_PER_INCH, POINTS_PER_INCH, TWIPS_PER_POINT


class UnitMetric(Enum):
    """Measurement unit of a CSS/HTML length."""

    PIXEL = "px"
    POINT = "pt"
    PICA = "pc"
    INCH = "in"
    CENTIMETER = "cm"
    MILLIMETER = "mm"
    EM = "em"
    EX = "ex"
    PERCENT = "%"
    AUTO = "auto"
    UNKNOWN = ""


# points per unit for the absolute metrics; em/ex assume a 12pt base font
_POINTS_PER_UNIT = {
    UnitMetric.PIXEL: POINTS_PER_INCH / PIXELS_PER_INCH,
    UnitMetric.POINT: 1.0,
    UnitMetric.PICA: 12.0,
    UnitMetric.INCH: float(POINTS_PER_INCH),
    UnitMetric.CENTIMETER: POINTS_PER_INCH / 2.54,
    UnitMetric.MILLIMETER: POINTS_PER_INCH / 25.4,
    UnitMetric.EM: 12.0,
    UnitMetric.EX: 6.0,
}

_UNIT_PATTERN = re.compile(r"^\s*(?P<value>[+-]?(?:\d+(?:\.\d*)?|\.\d+))\s*(?P<unit>px|pt|pc|in|cm|mm|em|ex|%)?\s*$", re.I)

_BORDER_WIDTH_KEYWORDS = {"thin": 1.0, "medium": 3.0, "thick": 5.0}

_BORDER_STYLES = {
    "solid": "single",
    "dotted": "dotted",
    "dashed": "dashed",
    "double": "double",
    "groove": "threeDEngrave",
    "ridge": "threeDEmboss",
    "inset": "inset",
    "outset": "outset",
    "none": "none",
    "hidden": "none",
}

_NAMED_COLORS = {
    "black": "000000",
    "silver": "C0C0C0",
    "gray": "808080",
    "grey": "808080",
    "white": "FFFFFF",
    "maroon": "800000",
    "red": "FF0000",
    "purple": "800080",
    "fuchsia": "FF00FF",
    "magenta": "FF00FF",
    "green": "008000",
    "lime": "00FF00",
    "olive": "808000",
    "yellow": "FFFF00",
    "navy": "000080",
    "blue": "0000FF",
    "teal": "008080",
    "aqua": "00FFFF",
    "cyan": "00FFFF",
    "orange": "FFA500",
    "pink": "FFC0CB",
    "brown": "A52A2A",
    "gold": "FFD700",
    "lightgray": "D3D3D3",
    "lightgrey": "D3D3D3",
    "darkgray": "A9A9A9",
    "darkgrey": "A9A9A9",
    "darkred": "8B0000",
    "darkgreen": "006400",
    "darkblue": "00008B",
    "lightblue": "ADD8E6",
    "lightyellow": "FFFFE0",
}

# <font size="1..7"> in points
_HTML_FONT_SIZES = {1: 7.5, 2: 10.0, 3: 12.0, 4: 13.5, 5: 18.0, 6: 24.0, 7: 36.0}
_CSS_FONT_SIZE_KEYWORDS = {
    "xx-small": 7.5,
    "x-small": 10.0,
    "small": 12.0,
    "medium": 13.5,
    "large": 18.0,
    "x-large": 24.0,
    "xx-large": 36.0,
}

_ALIGNMENTS = {"left": "left", "right": "right", "center": "center", "justify": "both", "start": "left", "end": "right"}


@dataclass(frozen=True)
class Unit:
    """A length with its unit.

    Attributes
    ----------
    metric : UnitMetric
        Unit of the value; ``UNKNOWN`` marks a value that failed to parse.
    value : float
        Numeric value expressed in ``metric``.

    """

    metric: UnitMetric = UnitMetric.UNKNOWN
    value: float = 0.0

    @classmethod
    def parse(cls, text: str | None, default_metric: UnitMetric = UnitMetric.PIXEL) -> Unit:
        """Parse ``"12px"``, ``"50%"``, ``"auto"`` or a bare number.

        Bare numbers take ``default_metric`` (pixels, as in HTML attributes).
        Anything else yields an invalid unit.
        """
        if text is None:
            return EMPTY_UNIT
        text = text.strip().lower()
        if text == "auto":
            return cls(UnitMetric.AUTO, 0.0)
        match = _UNIT_PATTERN.match(text)
        if not match:
            return EMPTY_UNIT
        unit = match.group("unit")
        metric = UnitMetric(unit.lower()) if unit else default_metric
        return cls(metric, float(match.group("value")))

    @property
    def is_valid(self) -> bool:
        return self.metric is not UnitMetric.UNKNOWN

    @property
    def is_fixed(self) -> bool:
        """True for absolute lengths (not percent, not auto)."""
        return self.metric in _POINTS_PER_UNIT

    @property
    def value_in_points(self) -> float:
        return self.value * _POINTS_PER_UNIT.get(self.metric, 0.0)

    @property
    def value_in_px(self) -> int:
        if self.metric is UnitMetric.PIXEL:
            return int(round(self.value))
        return int(round(self.value_in_points * PIXELS_PER_INCH / POINTS_PER_INCH))

    @property
    def value_in_dxa(self) -> int:
        """Twentieths of a point, the unit of most WordprocessingML lengths."""
        return int(round(self.value_in_points * TWIPS_PER_POINT))

    @property
    def value_in_eighth_points(self) -> int:
        """Eighths of a point, the unit of border widths."""
        return int(round(self.value_in_points * 8))


EMPTY_UNIT = Unit()


@dataclass(frozen=True)
class HtmlColor:
    """An RGB color.

    Examples
    --------
        >>> HtmlColor.parse("#0f0").to_hex()
        '00FF00'
        >>> HtmlColor.parse("rgb(255, 0, 0)").to_hex()
        'FF0000'

    """

    red: int
    green: int
    blue: int

    @classmethod
    def parse(cls, text: str | None) -> HtmlColor | None:
        if not text:
            return None
        text = text.strip().lower()
        if text in _NAMED_COLORS:
            text = "#" + _NAMED_COLORS[text]
        if text.startswith("#"):
            digits = text[1:]
            if len(digits) == 3:
                digits = "".join(c * 2 for c in digits)
            if len(digits) != 6:
                return None
            try:
                return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
            except ValueError:
                return None
        match = re.match(r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*[\d.]+\s*)?\)$", text)
        if match:
            red, green, blue = (min(255, int(g)) for g in match.groups())
            return cls(red, green, blue)
        return None

    def to_hex(self) -> str:
        return f"{self.red:02X}{self.green:02X}{self.blue:02X}"


@dataclass(frozen=True)
class SideBorder:
    """One side of a CSS border, already mapped to a WordprocessingML border style."""

    style: str | None = None
    width: Unit = EMPTY_UNIT
    color: HtmlColor | None = None

    @classmethod
    def parse(cls, text: str | None) -> SideBorder:
        """Parse a shorthand such as ``"1px solid #ccc"``; tokens may come in any order."""
        if not text:
            return EMPTY_SIDE_BORDER
        style = None
        width = EMPTY_UNIT
        color = None
        for token in _split_css_tokens(text):
            lowered = token.lower()
            if lowered in _BORDER_STYLES:
                style = _BORDER_STYLES[lowered]
            elif lowered in _BORDER_WIDTH_KEYWORDS:
                width = Unit(UnitMetric.PIXEL, _BORDER_WIDTH_KEYWORDS[lowered])
            elif (unit := Unit.parse(lowered)).is_fixed:
                width = unit
            elif (parsed_color := HtmlColor.parse(lowered)) is not None:
                color = parsed_color
        if style is None and width.is_valid:
            style = "single"
        return cls(style=style, width=width, color=color)

    @property
    def is_valid(self) -> bool:
        return self.style is not None

    def ooxml_attributes(self) -> dict[str, str]:
        """Attributes of a ``w:top``/``w:left``/... border element."""
        attrs = {"val": self.style or "none"}
        if self.style not in (None, "none"):
            size = self.width.value_in_eighth_points if self.width.is_fixed else 4
            attrs["sz"] = str(max(2, min(96, size)))
            attrs["space"] = "0"
            attrs["color"] = self.color.to_hex() if self.color else "auto"
        return attrs


EMPTY_SIDE_BORDER = SideBorder()


@dataclass(frozen=True)
class Border:
    """The four sides of a CSS border."""

    top: SideBorder = EMPTY_SIDE_BORDER
    right: SideBorder = EMPTY_SIDE_BORDER
    bottom: SideBorder = EMPTY_SIDE_BORDER
    left: SideBorder = EMPTY_SIDE_BORDER

    @property
    def is_empty(self) -> bool:
        return not any(side.is_valid for side in self.sides().values())

    def sides(self) -> dict[str, SideBorder]:
        return {"top": self.top, "left": self.left, "bottom": self.bottom, "right": self.right}


@dataclass(frozen=True)
class Margin:
    """The four sides of a CSS ``margin`` or ``padding``."""

    top: Unit = EMPTY_UNIT
    right: Unit = EMPTY_UNIT
    bottom: Unit = EMPTY_UNIT
    left: Unit = EMPTY_UNIT

    @classmethod
    def parse(cls, text: str | None) -> Margin:
        """Parse the 1 to 4 value CSS shorthand."""
        if not text:
            return cls()
        units = [Unit.parse(token) for token in text.split()]
        if not units or len(units) > 4:
            return cls()
        if len(units) == 1:
            return cls(units[0], units[0], units[0], units[0])
        if len(units) == 2:
            return cls(units[0], units[1], units[0], units[1])
        if len(units) == 3:
            return cls(units[0], units[1], units[2], units[1])
        return cls(*units)

    @property
    def is_empty(self) -> bool:
        return not any(unit.is_valid for unit in (self.top, self.right, self.bottom, self.left))


@dataclass(frozen=True)
class StyleDeclarations:
    """Inline CSS of one element, keyed by lower-cased property name."""

    values: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, style: str | None) -> StyleDeclarations:
        """Parse a ``style`` attribute.

        Examples
        --------
            >>> StyleDeclarations.parse("color: red; TEXT-ALIGN:center")["text-align"]
            'center'

        """
        values: dict[str, str] = {}
        if style:
            for declaration in style.split(";"):
                name, sep, value = declaration.partition(":")
                if sep and name.strip() and value.strip():
                    values[name.strip().lower()] = value.replace("!important", "").strip()
        return cls(values)

    def __getitem__(self, name: str) -> str | None:
        return self.values.get(name)

    def __len__(self) -> int:
        return len(self.values)

    def get_as_unit(self, name: str) -> Unit:
        return Unit.parse(self.values.get(name), default_metric=UnitMetric.UNKNOWN)

    def get_as_side_border(self, name: str) -> SideBorder:
        return SideBorder.parse(self.values.get(name))

    def get_as_border(self, name: str = "border") -> Border:
        """Combine the shorthand with the per-side properties (``border-top`` ...)."""
        base = self.get_as_side_border(name)
        sides = {}
        for side in ("top", "right", "bottom", "left"):
            specific = self.get_as_side_border(f"{name}-{side}")
            sides[side] = specific if specific.is_valid else base
        return Border(**sides)

    def get_as_margin(self, name: str) -> Margin:
        """Combine the shorthand with the per-side properties (``margin-left`` ...)."""
        base = Margin.parse(self.values.get(name))
        sides = {}
        for side in ("top", "right", "bottom", "left"):
            specific = Unit.parse(self.values.get(f"{name}-{side}"))
            sides[side] = specific if specific.is_valid else getattr(base, side)
        return Margin(**sides)


@dataclass(frozen=True)
class HtmlAttributes:
    """Attributes of one element, keyed by lower-cased attribute name."""

    values: Mapping[str, str] = field(default_factory=dict)

    def __getitem__(self, name: str) -> str | None:
        return self.values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def __len__(self) -> int:
        return len(self.values)

    def get_as_int(self, name: str) -> int | None:
        value = self.values.get(name)
        if value is None:
            return None
        match = re.match(r"^\s*([+-]?\d+)", value)
        return int(match.group(1)) if match else None

    def get_as_unit(self, name: str) -> Unit:
        return Unit.parse(self.values.get(name))

    def get_as_classes(self) -> list[str]:
        value = self.values.get("class")
        return value.split() if value else []


def parse_alignment(value: str | None) -> str | None:
    """Map ``text-align``/``align`` values to a ``w:jc`` value."""
    if not value:
        return None
    return _ALIGNMENTS.get(value.strip().lower())


def parse_font_size(value: str | None) -> float | None:
    """Return a font size in points from a ``<font size>`` attribute or CSS ``font-size``."""
    if not value:
        return None
    value = value.strip().lower()
    if value in _CSS_FONT_SIZE_KEYWORDS:
        return _CSS_FONT_SIZE_KEYWORDS[value]
    if value.isdigit():
        return _HTML_FONT_SIZES.get(max(1, min(7, int(value))))
    unit = Unit.parse(value, default_metric=UnitMetric.UNKNOWN)
    return unit.value_in_points if unit.is_fixed and unit.value > 0 else None


def _split_css_tokens(text: str) -> list[str]:
    """Split on whitespace while keeping ``rgb(...)`` groups together."""
    return re.findall(r"\w+\([^)]*\)|[^\s]+", text)
