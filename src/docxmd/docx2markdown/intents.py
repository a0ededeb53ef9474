#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/docx2markdown/intents.py
"""Formatting intents recognized on Word paragraphs and runs.

WordprocessingML has no "this is a code block" or "this is a quote" flag;
what the document means has to be read from how it is formatted. The
functions here look at one paragraph or run at a time and return an
explicit intent (heading of level 2, ordered list item, code block,
bold run...) so the walker that writes Markdown never inspects OOXML
properties itself.

The recognized patterns are:

- ``w:pStyle`` naming a heading style: heading of the style's level
- ``ListParagraph`` style or ``w:numPr``: list item at ``ilvl + 1``
- ``IntenseQuote`` style: quote
- only a top border (no bottom, no left): horizontal rule
- borders, shading and indentation: code block
- borders and indentation without shading: block quote

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from docxmd.constants import (
    HEADING_STYLE_PREFIX,
    INTENSE_QUOTE_STYLE,
    LIST_PARAGRAPH_STYLE,
    SINGLE_STYLE_SENTINEL,
)

logger = logging.getLogger(__name__)

MAX_MARKDOWN_HEADING = 6

_HEADING_ID = re.compile(rf"^{HEADING_STYLE_PREFIX}\s*(\d)$", re.IGNORECASE)
_OUTLINE_LEVEL_TEXT = re.compile(r"^(%\d\.)+$")
_FALSE_VALUES = ("0", "false", "off", "none")


class BlockKind(Enum):
    """What a paragraph represents in Markdown."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST_ITEM = "list_item"
    QUOTE = "quote"
    CODE_BLOCK = "code_block"
    HORIZONTAL_RULE = "horizontal_rule"


@dataclass(frozen=True)
class ParagraphIntent:
    """Recognized meaning of one paragraph.

    Attributes
    ----------
    kind : BlockKind
        Block type
    level : int
        Heading level (1-6) or list nesting level (1-based); 0 otherwise
    ordered : bool
        List item of a numbered (not bulleted) list
    outline_level : int or None
        For headings with native outline numbering ("1.", "1.1." ...), the
        0-based numbering level; None when the heading is not numbered

    """

    kind: BlockKind
    level: int = 0
    ordered: bool = False
    outline_level: int | None = None


@dataclass(frozen=True)
class RunFormat:
    """Emphasis of a run, from a scan of all of its properties."""

    bold: bool = False
    italic: bool = False
    hyperlink: bool = False

    @property
    def marker(self) -> str:
        """Markdown delimiter wrapped around the run text."""
        if self.bold and self.italic:
            return "***"
        if self.bold:
            return "**"
        if self.italic:
            return "*"
        return ""


@dataclass(frozen=True)
class StyleInfo:
    """Style id and display name of a paragraph style."""

    style_id: str
    name: str = ""

    def is_style(self, style_id: str, display_name: str) -> bool:
        return self.style_id == style_id or self.name.lower() == display_name.lower()

    @property
    def heading_level(self) -> int:
        for candidate in (self.style_id, self.name):
            match = _HEADING_ID.match(candidate or "")
            if match:
                return int(match.group(1))
        return 0


class NumberingDefinitions:
    """Number formats of a document's list definitions.

    Maps ``numId`` and level to the ``w:numFmt`` and ``w:lvlText`` of the
    abstract definition the instance points at. A ``w:lvlOverride`` carrying
    its own ``w:lvl`` takes precedence.

    Parameters
    ----------
    numbering_element : lxml element or None
        ``w:numbering`` root of the numbering part

    """

    def __init__(self, numbering_element: Any | None):
        self._levels: dict[str, dict[int, tuple[str, str]]] = {}
        if numbering_element is None:
            return

        abstract_levels = {}
        for abstract in numbering_element.findall(_w("abstractNum")):
            abstract_levels[abstract.get(_w("abstractNumId"))] = _read_levels(abstract)

        for num in numbering_element.findall(_w("num")):
            num_id = num.get(_w("numId"))
            abstract_ref = num.find(_w("abstractNumId"))
            if num_id is None or abstract_ref is None:
                continue
            levels = dict(abstract_levels.get(abstract_ref.get(_w("val")), {}))
            for override in num.findall(_w("lvlOverride")):
                levels.update(_read_levels(override))
            self._levels[num_id] = levels

        logger.debug(f"Read {len(self._levels)} numbering instance(s)")

    def level_format(self, num_id: str | None, ilvl: int) -> tuple[str, str] | None:
        """``(numFmt, lvlText)`` of ``num_id`` at ``ilvl``, falling back to level 0."""
        levels = self._levels.get(num_id or "")
        if not levels:
            return None
        return levels.get(ilvl) or levels.get(0)

    def is_ordered(self, num_id: str | None, ilvl: int) -> bool:
        level = self.level_format(num_id, ilvl)
        return level is not None and level[0] not in ("bullet", "none")

    def is_outline(self, num_id: str | None, ilvl: int) -> bool:
        """Whether the level renders as "1.", "1.2." and so on."""
        level = self.level_format(num_id, ilvl)
        return level is not None and level[0] == "decimal" and bool(_OUTLINE_LEVEL_TEXT.match(level[1]))


def classify_paragraph(paragraph: Any, style: StyleInfo, numbering: NumberingDefinitions) -> ParagraphIntent:
    """Recognize what ``paragraph`` stands for.

    Parameters
    ----------
    paragraph : lxml element
        ``w:p`` element
    style : StyleInfo
        The paragraph style; ``SINGLE_STYLE_SENTINEL`` when it has none
    numbering : NumberingDefinitions
        Number formats of the document

    Returns
    -------
    ParagraphIntent
        ``BlockKind.PARAGRAPH`` when no pattern matches

    """
    properties = paragraph.find(_w("pPr"))
    borders = properties.find(_w("pBdr")) if properties is not None else None

    if borders is not None and _is_rule_border(borders):
        return ParagraphIntent(BlockKind.HORIZONTAL_RULE)

    num_id, ilvl = _numbering_reference(properties)

    heading = style.heading_level
    if heading:
        outline = ilvl if num_id is not None and numbering.is_outline(num_id, ilvl) else None
        return ParagraphIntent(BlockKind.HEADING, min(heading, MAX_MARKDOWN_HEADING), outline_level=outline)

    if style.is_style(LIST_PARAGRAPH_STYLE, "List Paragraph") or num_id is not None:
        ordered = num_id is not None and numbering.is_ordered(num_id, ilvl)
        return ParagraphIntent(BlockKind.LIST_ITEM, ilvl + 1, ordered=ordered)

    if style.is_style(INTENSE_QUOTE_STYLE, "Intense Quote"):
        return ParagraphIntent(BlockKind.QUOTE)

    if properties is not None and borders is not None and properties.find(_w("ind")) is not None:
        if properties.find(_w("shd")) is not None:
            return ParagraphIntent(BlockKind.CODE_BLOCK)
        return ParagraphIntent(BlockKind.QUOTE)

    return ParagraphIntent(BlockKind.PARAGRAPH)


def paragraph_style_id(paragraph: Any) -> str:
    """``w:pStyle`` value of ``paragraph``, or the "single" sentinel."""
    properties = paragraph.find(_w("pPr"))
    style = properties.find(_w("pStyle")) if properties is not None else None
    value = style.get(_w("val")) if style is not None else None
    return value or SINGLE_STYLE_SENTINEL


def run_format(run: Any, hyperlink_style: str) -> RunFormat:
    """Emphasis and hyperlink styling of a ``w:r`` element."""
    properties = run.find(_w("rPr"))
    if properties is None:
        return RunFormat()

    style = properties.find(_w("rStyle"))
    return RunFormat(
        bold=_is_on(properties.find(_w("b"))),
        italic=_is_on(properties.find(_w("i"))),
        hyperlink=style is not None and style.get(_w("val")) == hyperlink_style,
    )


def cell_alignment(paragraph: Any) -> str | None:
    """``w:jc`` value of a table cell paragraph, None without paragraph properties."""
    properties = paragraph.find(_w("pPr"))
    if properties is None:
        return None
    jc = properties.find(_w("jc"))
    return jc.get(_w("val")) if jc is not None else "normal"


def _w(name: str) -> str:
    from docx.oxml.ns import qn

    return qn(f"w:{name}")


def _is_on(toggle: Any | None) -> bool:
    if toggle is None:
        return False
    return (toggle.get(_w("val")) or "true").lower() not in _FALSE_VALUES


def _is_rule_border(borders: Any) -> bool:
    return (
        borders.find(_w("top")) is not None
        and borders.find(_w("bottom")) is None
        and borders.find(_w("left")) is None
    )


def _numbering_reference(properties: Any | None) -> tuple[str | None, int]:
    if properties is None:
        return None, 0
    num_pr = properties.find(_w("numPr"))
    if num_pr is None:
        return None, 0
    num_id = num_pr.find(_w("numId"))
    ilvl = num_pr.find(_w("ilvl"))
    try:
        level = int(ilvl.get(_w("val"))) if ilvl is not None else 0
    except (TypeError, ValueError):
        level = 0
    value = num_id.get(_w("val")) if num_id is not None else None
    # numId 0 removes numbering inherited from the style
    if value in (None, "0"):
        return None, 0
    return value, max(0, level)


def _read_levels(container: Any) -> dict[int, tuple[str, str]]:
    levels = {}
    for lvl in container.findall(_w("lvl")):
        try:
            ilvl = int(lvl.get(_w("ilvl"), "0"))
        except ValueError:
            continue
        num_fmt = lvl.find(_w("numFmt"))
        lvl_text = lvl.find(_w("lvlText"))
        levels[ilvl] = (
            num_fmt.get(_w("val"), "decimal") if num_fmt is not None else "decimal",
            lvl_text.get(_w("val"), "") if lvl_text is not None else "",
        )
    return levels
