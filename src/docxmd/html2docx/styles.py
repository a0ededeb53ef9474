#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/styles.py
"""Style lookup and inherited formatting for the HTML to DOCX direction.

``StyleRegistry`` resolves style names against the document's style part,
adding the handful of styles the converter relies on when the template
lacks them. ``StyleTagStack`` keeps the formatting opened by inline and
block tags (``<b>``, ``<span style=...>``, ``<td style="text-align...">``)
until the matching closing tag, and applies it to the runs and paragraphs
created in between.

"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from docxmd.constants import (
    CAPTION_STYLE,
    CODE_FONT,
    ENDNOTE_REFERENCE_STYLE,
    ENDNOTE_TEXT_STYLE,
    FOOTNOTE_REFERENCE_STYLE,
    FOOTNOTE_TEXT_STYLE,
    HEADING_STYLE_PREFIX,
    HYPERLINK_STYLE,
    INTENSE_QUOTE_STYLE,
    LIST_PARAGRAPH_STYLE,
    QUOTE_CHAR_STYLE,
    TABLE_STYLE,
)
from docxmd.html2docx.oxml import get_or_add_properties, local_name, make_element, set_property
from docxmd.html2docx.units import HtmlColor, parse_alignment, parse_font_size

if TYPE_CHECKING:
    from docxmd.html2docx.tokenizer import TagEvent

logger = logging.getLogger(__name__)

# style id -> (display name, style type)
PREDEFINED_STYLES: dict[str, tuple[str, str]] = {
    HYPERLINK_STYLE: ("Hyperlink", "character"),
    FOOTNOTE_REFERENCE_STYLE: ("Footnote Reference", "character"),
    ENDNOTE_REFERENCE_STYLE: ("Endnote Reference", "character"),
    FOOTNOTE_TEXT_STYLE: ("Footnote Text", "paragraph"),
    ENDNOTE_TEXT_STYLE: ("Endnote Text", "paragraph"),
    CAPTION_STYLE: ("Caption", "paragraph"),
    QUOTE_CHAR_STYLE: ("Quote Char", "character"),
    INTENSE_QUOTE_STYLE: ("Intense Quote", "paragraph"),
    LIST_PARAGRAPH_STYLE: ("List Paragraph", "paragraph"),
    TABLE_STYLE: ("Table Grid", "table"),
    **{f"{HEADING_STYLE_PREFIX}{level}": (f"Heading {level}", "paragraph") for level in range(1, 7)},
}

_HEADING_SIZES = {1: 16, 2: 13, 3: 12, 4: 11, 5: 11, 6: 11}


class StyleRegistry:
    """Resolve style names to style ids of one document.

    Parameters
    ----------
    document : docx.document.Document
        The document whose style part is searched and extended

    """

    def __init__(self, document: Any):
        self._styles = document.styles
        self._by_id: dict[str, Any] = {}
        self._by_name: dict[str, Any] = {}
        for style in self._styles:
            self._index(style)

    def _index(self, style: Any) -> None:
        if style.style_id:
            self._by_id[style.style_id.lower()] = style
        if style.name:
            self._by_name[style.name.lower()] = style

    def _find(self, name: str, ignore_case: bool) -> Any | None:
        style = self._by_id.get(name.lower()) or self._by_name.get(name.lower())
        if style is None:
            return None
        if not ignore_case and name not in (style.style_id, style.name):
            return None
        return style

    def get_style(self, name: str, style_type: str, ignore_case: bool = False) -> str | None:
        """Return the style id for ``name`` if it names a style of ``style_type``.

        Parameters
        ----------
        name : str
            Style id or display name
        style_type : {"paragraph", "character", "table"}
            Expected style type
        ignore_case : bool, default False
            Compare names case-insensitively; used for CSS class names

        Returns
        -------
        str or None
            The style id, or None when no such style exists and ``name`` is
            not one of the predefined styles (which are added on demand).

        """
        from docx.enum.style import WD_STYLE_TYPE

        expected = getattr(WD_STYLE_TYPE, style_type.upper())
        style = self._find(name, ignore_case)
        if style is not None and style.type == expected:
            return style.style_id

        predefined = PREDEFINED_STYLES.get(name)
        if predefined is None or predefined[1] != style_type:
            if style is not None:
                logger.debug(f"Style '{name}' exists but is not a {style_type} style")
            return None
        return self._add_predefined(name, predefined[0], expected)

    def has_table_borders(self, style_id: str) -> bool:
        """Whether a table style defines ``w:tblBorders``."""
        from docx.oxml.ns import qn

        style = self._by_id.get(style_id.lower())
        if style is None:
            return False
        return style.element.find(f"{qn('w:tblPr')}/{qn('w:tblBorders')}") is not None

    def _add_predefined(self, style_id: str, display_name: str, style_type: Any) -> str:
        from docx.enum.style import WD_STYLE_TYPE
        from docx.shared import Pt, RGBColor, Twips

        existing = self._by_name.get(display_name.lower())
        if existing is not None and existing.type == style_type:
            return existing.style_id

        style = self._styles.add_style(display_name, style_type)
        logger.debug(f"Added missing style '{display_name}' ({style.style_id})")

        if style_type == WD_STYLE_TYPE.CHARACTER:
            if style_id == HYPERLINK_STYLE:
                style.font.color.rgb = RGBColor(0x05, 0x63, 0xC1)
                style.font.underline = True
            elif style_id in (FOOTNOTE_REFERENCE_STYLE, ENDNOTE_REFERENCE_STYLE):
                style.font.superscript = True
            elif style_id == QUOTE_CHAR_STYLE:
                style.font.italic = True
        elif style_type == WD_STYLE_TYPE.PARAGRAPH:
            if style_id in (FOOTNOTE_TEXT_STYLE, ENDNOTE_TEXT_STYLE):
                style.font.size = Pt(10)
            elif style_id == CAPTION_STYLE:
                style.font.italic = True
                style.font.size = Pt(9)
            elif style_id == INTENSE_QUOTE_STYLE:
                style.font.italic = True
                style.paragraph_format.left_indent = Twips(864)
            elif style_id == LIST_PARAGRAPH_STYLE:
                style.paragraph_format.left_indent = Twips(720)
            elif style_id.startswith(HEADING_STYLE_PREFIX):
                level = int(style_id[len(HEADING_STYLE_PREFIX) :])
                style.font.bold = True
                style.font.size = Pt(_HEADING_SIZES[level])
                style.paragraph_format.keep_with_next = True

        self._index(style)
        return style.style_id


@dataclass
class _TagFrame:
    tag: str
    fragments: list[Any]


class StyleTagStack:
    """Formatting fragments opened by tags that are still open.

    Frames are pushed by ``begin_tag`` and popped by ``end_tag`` for the same
    tag name. When applied, the most recently opened frame wins and
    properties already set on the element are never overwritten.
    """

    def __init__(self) -> None:
        self._frames: list[_TagFrame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def begin_tag(self, tag: str, fragments: Iterable[Any] = ()) -> None:
        # Empty frames are kept so nested tags of the same name pop symmetrically
        self._frames.append(_TagFrame(tag, list(fragments)))

    def end_tag(self, tag: str) -> None:
        for index in range(len(self._frames) - 1, -1, -1):
            if self._frames[index].tag == tag:
                del self._frames[index]
                return

    def fragments(self) -> list[Any]:
        """Active fragments, innermost first."""
        return [fragment for frame in reversed(self._frames) for fragment in frame.fragments]

    def apply(self, element: Any) -> Any:
        """Copy the active fragments into the property container of ``element``."""
        fragments = self.fragments()
        if not fragments:
            return element
        properties = get_or_add_properties(element)
        present = {local_name(child) for child in properties}
        for fragment in fragments:
            name = local_name(fragment)
            if name not in present:
                set_property(properties, deepcopy(fragment))
                present.add(name)
        return element


def run_fragments(event: TagEvent, registry: StyleRegistry | None = None) -> list[Any]:
    """Run properties carried by the attributes and inline CSS of a container tag.

    Handles ``color``, ``background-color``, ``font-size``, ``font-family``,
    ``font-weight``, ``font-style``, ``text-decoration`` and
    ``vertical-align``, the ``<font>`` attributes ``color``/``size``/``face``
    and a ``class`` naming an existing character style.
    """
    styles = event.styles
    attributes = event.attributes
    fragments = []

    if registry is not None:
        for class_name in attributes.get_as_classes():
            style_id = registry.get_style(class_name, "character", ignore_case=True)
            if style_id:
                fragments.append(make_element("rStyle", {"val": style_id}))
                break

    face = styles["font-family"] or attributes["face"]
    if face:
        font = face.split(",")[0].strip().strip("'\"")
        if font:
            fragments.append(make_element("rFonts", {"ascii": font, "hAnsi": font, "cs": font}))

    weight = (styles["font-weight"] or "").lower()
    if weight == "bold" or weight == "bolder" or (weight.isdigit() and int(weight) >= 600):
        fragments.append(make_element("b"))
    if (styles["font-style"] or "").lower() in ("italic", "oblique"):
        fragments.append(make_element("i"))

    decoration = (styles["text-decoration"] or styles["text-decoration-line"] or "").lower()
    if "line-through" in decoration:
        fragments.append(make_element("strike"))

    color = HtmlColor.parse(styles["color"] or attributes["color"])
    if color is not None:
        fragments.append(make_element("color", {"val": color.to_hex()}))

    size = parse_font_size(styles["font-size"] or attributes["size"])
    if size:
        half_points = int(round(size * 2))
        fragments.append(make_element("sz", {"val": half_points}))
        fragments.append(make_element("szCs", {"val": half_points}))

    if "underline" in decoration:
        fragments.append(make_element("u", {"val": "single"}))

    background = HtmlColor.parse(styles["background-color"] or styles["background"])
    if background is not None:
        fragments.append(make_element("shd", {"val": "clear", "color": "auto", "fill": background.to_hex()}))

    vertical = (styles["vertical-align"] or "").lower()
    if vertical in ("sub", "super"):
        fragments.append(make_element("vertAlign", {"val": "subscript" if vertical == "sub" else "superscript"}))

    return fragments


def justification(event: TagEvent) -> Any | None:
    """``w:jc`` from ``text-align`` or the legacy ``align`` attribute."""
    value = parse_alignment(event.styles["text-align"] or event.attributes["align"])
    return make_element("jc", {"val": value}) if value else None


def code_run_fragments() -> list[Any]:
    return [make_element("rFonts", {"ascii": CODE_FONT, "hAnsi": CODE_FONT, "cs": CODE_FONT})]
