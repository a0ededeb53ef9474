#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/numbering.py
"""List and heading numbering for the HTML to DOCX direction.

Each list kind (bullets, decimal, letters, roman numerals) gets one
abstract numbering definition; every ``<ul>``/``<ol>`` then creates its own
numbering instance pointing at it, so separate ordered lists restart at 1
(or at their ``start`` attribute). Headings carrying manual numbering share
a dedicated multi-level definition ("1.", "1.1.", "1.1.1." ...).

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from docxmd.constants import WORDPROCESSING_NS
from docxmd.html2docx.oxml import make_element, set_element_property

if TYPE_CHECKING:
    from docxmd.html2docx.tokenizer import TagEvent

logger = logging.getLogger(__name__)

MAX_LIST_LEVEL = 9

_BULLET_GLYPHS = ("•", "o", "▪")

# CSS list-style-type -> numFmt
_LIST_STYLE_FORMATS = {
    "disc": "bullet",
    "circle": "bullet",
    "square": "bullet",
    "none": "bullet",
    "decimal": "decimal",
    "lower-alpha": "lowerLetter",
    "lower-latin": "lowerLetter",
    "upper-alpha": "upperLetter",
    "upper-latin": "upperLetter",
    "lower-roman": "lowerRoman",
    "upper-roman": "upperRoman",
}

# <ol type="...">
_OL_TYPE_FORMATS = {"1": "decimal", "a": "lowerLetter", "A": "upperLetter", "i": "lowerRoman", "I": "upperRoman"}

HEADING_FORMAT = "heading"


@dataclass
class ListFrame:
    """One open ``<ul>``/``<ol>``."""

    num_id: int
    num_format: str
    level: int
    classes: list[str] = field(default_factory=list)


class NumberingTracker:
    """Allocate numbering instances and track list nesting.

    Parameters
    ----------
    document : docx.document.Document
        Document whose numbering part receives the definitions

    """

    def __init__(self, document: Any):
        self._numbering = _numbering_element(document)
        self._abstract_ids: dict[str, int] = {}
        self._heading_num_id: int | None = None
        self._frames: list[ListFrame] = []

    @property
    def level(self) -> int:
        """Nesting depth of the innermost open list (0 outside lists)."""
        return len(self._frames)

    @property
    def class_chain(self) -> list[str]:
        """CSS classes of the open lists, innermost first."""
        return [name for frame in reversed(self._frames) for name in frame.classes]

    def begin_list(self, event: TagEvent) -> ListFrame:
        """Open a list for a ``<ul>`` or ``<ol>`` tag."""
        num_format = _list_format(event)
        level = min(len(self._frames) + 1, MAX_LIST_LEVEL)
        start = event.attributes.get_as_int("start") if num_format != "bullet" else None
        num_id = self._new_instance(num_format, level - 1, start if start is not None else 1)
        frame = ListFrame(num_id, num_format, level, event.attributes.get_as_classes())
        self._frames.append(frame)
        return frame

    def end_list(self) -> None:
        if self._frames:
            self._frames.pop()

    def process_item(self) -> ListFrame:
        """Return the list an ``<li>`` belongs to.

        A list item outside of any list opens an implicit bullet list, closed
        by the next ``</ul>``/``</ol>`` or left open until the end of the
        document.
        """
        if not self._frames:
            logger.debug("List item outside of a list; starting an implicit bullet list")
            num_id = self._new_instance("bullet", 0, 1)
            self._frames.append(ListFrame(num_id, "bullet", 1))
        return self._frames[-1]

    def apply_heading_numbering(self, paragraph: Any, level: int) -> None:
        """Attach the shared heading numbering to a heading paragraph at ``level`` (1-based)."""
        if self._heading_num_id is None:
            self._heading_num_id = self._new_instance(HEADING_FORMAT, None, None)
        set_element_property(paragraph, numbering_properties(self._heading_num_id, min(level, MAX_LIST_LEVEL) - 1))

    def _new_instance(self, num_format: str, override_level: int | None, start: int | None) -> int:
        abstract_id = self._abstract_ids.get(num_format)
        if abstract_id is None:
            abstract_id = self._add_abstract(num_format)
            self._abstract_ids[num_format] = abstract_id

        num = self._numbering.add_num(abstract_id)
        if override_level is not None and num_format != "bullet":
            num.append(
                make_element(
                    "lvlOverride",
                    {"ilvl": override_level},
                    [make_element("startOverride", {"val": start})],
                )
            )
        return num.numId

    def _add_abstract(self, num_format: str) -> int:
        from docx.oxml.ns import qn

        existing = [int(node.get(qn("w:abstractNumId"))) for node in self._numbering.findall(qn("w:abstractNum"))]
        abstract_id = max(existing, default=-1) + 1

        abstract = make_element("abstractNum", {"abstractNumId": abstract_id})
        multi_level = "multilevel" if num_format == HEADING_FORMAT else "hybridMultilevel"
        abstract.append(make_element("multiLevelType", {"val": multi_level}))
        for ilvl in range(MAX_LIST_LEVEL):
            abstract.append(_level_definition(num_format, ilvl))

        # abstractNum elements must precede every w:num
        first_num = self._numbering.find(qn("w:num"))
        if first_num is not None:
            first_num.addprevious(abstract)
        else:
            self._numbering.append(abstract)
        logger.debug(f"Added abstract numbering {abstract_id} for '{num_format}' lists")
        return abstract_id


def _numbering_element(document: Any) -> Any:
    """Root of the numbering part, adding an empty part to documents that have none."""
    from docx.opc.constants import CONTENT_TYPE as CT
    from docx.opc.constants import RELATIONSHIP_TYPE as RT
    from docx.opc.packuri import PackURI
    from docx.oxml import parse_xml
    from docx.parts.numbering import NumberingPart

    document_part = document.part
    try:
        return document_part.part_related_by(RT.NUMBERING)._element
    except KeyError:
        logger.debug("Document has no numbering part")

    element = parse_xml(f'<w:numbering xmlns:w="{WORDPROCESSING_NS}"/>')
    part = NumberingPart(PackURI("/word/numbering.xml"), CT.WML_NUMBERING, element, document_part.package)
    document_part.relate_to(part, RT.NUMBERING)
    logger.debug("Added a numbering part to the document")
    return element


def numbering_properties(num_id: int, ilvl: int) -> Any:
    """``w:numPr`` referencing numbering instance ``num_id`` at ``ilvl`` (0-based)."""
    return make_element("numPr", children=[make_element("ilvl", {"val": ilvl}), make_element("numId", {"val": num_id})])


def _list_format(event: TagEvent) -> str:
    css = (event.styles["list-style-type"] or event.styles["list-style"] or "").split()
    for token in css:
        if token.lower() in _LIST_STYLE_FORMATS:
            return _LIST_STYLE_FORMATS[token.lower()]
    if event.name == "ol":
        return _OL_TYPE_FORMATS.get(event.attributes["type"] or "1", "decimal")
    return "bullet"


def _level_definition(num_format: str, ilvl: int) -> Any:
    if num_format == HEADING_FORMAT:
        text = "".join(f"%{n}." for n in range(1, ilvl + 2))
        indent = {"left": 0, "firstLine": 0}
        fmt = "decimal"
    elif num_format == "bullet":
        text = _BULLET_GLYPHS[ilvl % len(_BULLET_GLYPHS)]
        indent = {"left": 720 * (ilvl + 1), "hanging": 360}
        fmt = "bullet"
    else:
        text = f"%{ilvl + 1}."
        indent = {"left": 720 * (ilvl + 1), "hanging": 360}
        fmt = num_format

    return make_element(
        "lvl",
        {"ilvl": ilvl},
        [
            make_element("start", {"val": 1}),
            make_element("numFmt", {"val": fmt}),
            make_element("lvlText", {"val": text}),
            make_element("lvlJc", {"val": "left"}),
            make_element("pPr", children=[make_element("ind", indent)]),
        ],
    )
