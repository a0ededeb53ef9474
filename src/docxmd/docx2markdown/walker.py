#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/docx2markdown/walker.py
"""DOCX to Markdown reconstruction.

The walker visits the body of a Word document in order. Paragraphs are
classified by ``intents.classify_paragraph`` and their runs rendered to
Markdown inline text; tables become pipe tables. Embedded images are
collected into a name -> bytes map while their references are written as
``![alt](<prefix><name>)``.

All state of one walk lives in a ``WalkState`` created by ``walk``, so one
walker instance can be used for any number of documents, concurrently or
not. The document itself is never modified.

"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any

from docxmd.constants import (
    CHECKBOX_CHECKED_GLYPH,
    CHECKBOX_UNCHECKED_GLYPH,
    DEPS_DOCX,
    HYPERLINK_STYLE,
    LIST_NESTING_INDENT,
    SVG_BLIP_NS,
    WORD14_NS,
)
from docxmd.docx2markdown.intents import (
    BlockKind,
    NumberingDefinitions,
    ParagraphIntent,
    StyleInfo,
    cell_alignment,
    classify_paragraph,
    paragraph_style_id,
    run_format,
)
from docxmd.options.docx import DocxToMarkdownOptions
from docxmd.utils.decorators import requires_dependencies
from docxmd.utils.escape import escape_link_text, escape_markdown_text, escape_table_cell

logger = logging.getLogger(__name__)

_MAX_OUTLINE_LEVELS = 9

# Inline containers whose content is rendered in place
_TRANSPARENT_CONTAINERS = ("fldSimple", "smartTag", "ins", "customXml", "sdtContent")

_DIVIDER_CELLS = {"left": ":---|", "start": ":---|", "center": ":---:|", "right": "---:|", "end": "---:|"}


@dataclass
class MarkdownResult:
    """Markdown text and the images extracted while producing it.

    Attributes
    ----------
    markdown : str
        Reconstructed Markdown
    images : dict[str, bytes]
        Image file name (as referenced in the Markdown) to raw bytes

    """

    markdown: str
    images: dict[str, bytes] = field(default_factory=dict)


@dataclass
class _Segment:
    text: str
    marker: str = ""
    literal: bool = False


@dataclass
class InlineAccumulator:
    """Markdown pieces of one paragraph (or link text) in output order.

    ``escaped`` records whether any text of the paragraph needed escaping;
    positional hyperlink pairing writes a bare URI after that.
    """

    code: bool = False
    line_start: bool = True
    segments: list[_Segment] = field(default_factory=list)
    escaped: bool = False

    @property
    def at_line_start(self) -> bool:
        return self.line_start and not any(segment.text for segment in self.segments)

    def add_text(self, text: str, marker: str = "") -> None:
        if not text:
            return
        if self.code:
            self.segments.append(_Segment(text, literal=True))
            return
        escaped, changed = escape_markdown_text(text, at_line_start=self.at_line_start)
        self.escaped = self.escaped or changed
        self.segments.append(_Segment(escaped, marker))

    def add_literal(self, text: str) -> None:
        if text:
            self.segments.append(_Segment(text, literal=True))

    def render(self) -> str:
        merged: list[_Segment] = []
        for segment in self.segments:
            previous = merged[-1] if merged else None
            if (
                previous is not None
                and not segment.literal
                and not previous.literal
                and segment.marker == previous.marker
            ):
                previous.text += segment.text
            else:
                merged.append(_Segment(segment.text, segment.marker, segment.literal))
        return "".join(_wrap(segment) for segment in merged)


@dataclass
class WalkState:
    """Everything one document walk reads and produces."""

    document: Any
    part: Any
    options: DocxToMarkdownOptions
    styles: dict[str, StyleInfo]
    numbering: NumberingDefinitions
    paragraph_styles: dict[Any, StyleInfo] = field(default_factory=dict)
    images: dict[str, bytes] = field(default_factory=dict)
    outline_counters: list[int] = field(default_factory=lambda: [0] * _MAX_OUTLINE_LEVELS)
    blocks: list[tuple[BlockKind | None, str]] = field(default_factory=list)
    hyperlinks: list[Any] = field(default_factory=list)
    hyperlink_index: int = 0

    @classmethod
    def create(cls, document: Any, options: DocxToMarkdownOptions) -> WalkState:
        styles = {}
        for style in document.styles:
            if style.style_id:
                styles[style.style_id] = StyleInfo(style.style_id, style.name or "")
        part = document.part
        return cls(
            document=document,
            part=part,
            options=options,
            styles=styles,
            numbering=NumberingDefinitions(_numbering_element(part)),
        )

    def paragraph_style(self, paragraph: Any) -> StyleInfo:
        """Style of ``paragraph``, looked up once per walk."""
        style = self.paragraph_styles.get(paragraph)
        if style is None:
            style_id = paragraph_style_id(paragraph)
            style = self.styles.get(style_id) or StyleInfo(style_id)
            self.paragraph_styles[paragraph] = style
        return style


class DocxToMarkdownWalker:
    """Reconstruct Markdown from a python-docx ``Document``.

    Parameters
    ----------
    options : DocxToMarkdownOptions or None
        Image prefix, table divider scope, hyperlink pairing and code fence

    Examples
    --------
        >>> import docx
        >>> walker = DocxToMarkdownWalker()
        >>> result = walker.walk(docx.Document("report.docx"))
        >>> print(result.markdown)

    """

    def __init__(self, options: DocxToMarkdownOptions | None = None):
        self.options = options or DocxToMarkdownOptions()

    @requires_dependencies("docx2markdown", DEPS_DOCX)
    def walk(self, document: Any) -> MarkdownResult:
        """Walk the body of ``document``.

        Parameters
        ----------
        document : docx.document.Document
            Opened document; it is not modified

        Returns
        -------
        MarkdownResult
            Markdown text plus the extracted images

        """
        state = WalkState.create(document, self.options)

        for child in document.element.body.iterchildren():
            name = _local_name(child)
            if name == "p":
                self._walk_paragraph(state, child)
            elif name == "tbl":
                self._walk_table(state, child)
            elif name != "sectPr":
                logger.debug(f"Ignoring body element <{name}>")

        markdown = _join_blocks(state.blocks)
        logger.debug(f"Reconstructed {len(state.blocks)} block(s) and {len(state.images)} image(s)")
        return MarkdownResult(markdown, state.images)

    # ------------------------------------------------------------------
    # Paragraphs
    # ------------------------------------------------------------------

    def _walk_paragraph(self, state: WalkState, paragraph: Any) -> None:
        intent = classify_paragraph(paragraph, state.paragraph_style(paragraph), state.numbering)

        if intent.kind is BlockKind.HORIZONTAL_RULE:
            state.blocks.append((intent.kind, "---"))
            return

        inline = InlineAccumulator(code=intent.kind is BlockKind.CODE_BLOCK)
        state.hyperlinks = [link for link in paragraph.iter(_w("hyperlink"))]
        state.hyperlink_index = 0
        self._render_children(state, paragraph, inline)
        text = inline.render()

        if intent.kind is BlockKind.CODE_BLOCK:
            fence = state.options.code_fence
            state.blocks.append((intent.kind, f"{fence}\n{text}\n{fence}"))
            return
        if not text.strip():
            return

        state.blocks.append((intent.kind, self._with_prefix(state, intent, text)))

    def _with_prefix(self, state: WalkState, intent: ParagraphIntent, text: str) -> str:
        if intent.kind is BlockKind.HEADING:
            number = _outline_number(state, intent.outline_level)
            return "#" * intent.level + " " + number + text.replace("\n", " ").strip()
        if intent.kind is BlockKind.LIST_ITEM:
            marker = "1. " if intent.ordered else "- "
            prefix = LIST_NESTING_INDENT * (intent.level - 1) + marker
            return prefix + text.replace("\n", "\n" + " " * len(prefix))
        if intent.kind is BlockKind.QUOTE:
            return "\n".join(f"> {line}" for line in text.split("\n"))
        return text

    def _render_children(self, state: WalkState, container: Any, inline: InlineAccumulator) -> None:
        for child in container.iterchildren():
            name = _local_name(child)
            if name == "r":
                self._render_run(state, child, inline)
            elif name == "hyperlink":
                self._render_hyperlink(state, child, inline)
            elif name == "sdt":
                self._render_content_control(state, child, inline)
            elif name in _TRANSPARENT_CONTAINERS:
                self._render_children(state, child, inline)

    def _render_run(self, state: WalkState, run: Any, inline: InlineAccumulator) -> None:
        formatting = run_format(run, HYPERLINK_STYLE)

        if state.options.hyperlink_pairing == "positional" and formatting.hyperlink and not inline.code:
            if self._render_positional_link(state, run, inline):
                return

        marker = "" if inline.code else formatting.marker
        for child in run.iterchildren():
            name = _local_name(child)
            if name == "t":
                text = child.text or ""
                if text == CHECKBOX_UNCHECKED_GLYPH:
                    inline.add_literal("[ ]")
                elif text == CHECKBOX_CHECKED_GLYPH:
                    inline.add_literal("[X]")
                else:
                    inline.add_text(text, marker)
            elif name == "tab":
                inline.add_text("\t", marker)
            elif name in ("br", "cr"):
                inline.add_literal("\n")
            elif name == "drawing":
                self._render_drawing(state, child, inline)

    def _render_hyperlink(self, state: WalkState, hyperlink: Any, inline: InlineAccumulator) -> None:
        if state.options.hyperlink_pairing == "positional" or inline.code:
            self._render_children(state, hyperlink, inline)
            return

        target = _hyperlink_target(state, hyperlink)
        if not target:
            self._render_children(state, hyperlink, inline)
            return

        label = InlineAccumulator(line_start=False)
        self._render_children(state, hyperlink, label)
        text = label.render()
        inline.escaped = inline.escaped or label.escaped
        inline.add_literal(f"[{text}]({target})")

    def _render_positional_link(self, state: WalkState, run: Any, inline: InlineAccumulator) -> bool:
        """Pair a Hyperlink-styled run with the next hyperlink of the paragraph.

        Returns False when the paragraph has no hyperlink left to pair with.
        """
        while state.hyperlink_index < len(state.hyperlinks):
            target = _hyperlink_target(state, state.hyperlinks[state.hyperlink_index])
            state.hyperlink_index += 1
            if not target:
                continue
            if inline.escaped:
                inline.add_literal(target)
            else:
                text = "".join(node.text or "" for node in run.iter(_w("t")))
                inline.add_literal(f"[{escape_link_text(text)}]({target})")
            return True
        return False

    def _render_content_control(self, state: WalkState, sdt: Any, inline: InlineAccumulator) -> None:
        from docx.oxml.ns import qn

        properties = sdt.find(qn("w:sdtPr"))
        checkbox = properties.find(f"{{{WORD14_NS}}}checkbox") if properties is not None else None
        if checkbox is not None:
            checked = checkbox.find(f"{{{WORD14_NS}}}checked")
            value = checked.get(f"{{{WORD14_NS}}}val", "0") if checked is not None else "0"
            inline.add_literal("[X]" if value in ("1", "true") else "[ ]")
            return

        content = sdt.find(qn("w:sdtContent"))
        if content is not None:
            self._render_children(state, content, inline)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _render_drawing(self, state: WalkState, drawing: Any, inline: InlineAccumulator) -> None:
        from docx.oxml.ns import qn

        blip = drawing.find(f".//{qn('a:blip')}")
        if blip is None:
            logger.debug("Skipping drawing without a picture")
            return

        r_id = blip.get(qn("r:embed"))
        svg_blip = blip.find(f".//{{{SVG_BLIP_NS}}}svgBlip")
        if svg_blip is not None and svg_blip.get(qn("r:embed")):
            r_id = svg_blip.get(qn("r:embed"))

        try:
            image_part = state.part.related_parts[r_id]
        except KeyError:
            logger.warning(f"Image relationship {r_id} not found in the document")
            return

        doc_pr = drawing.find(f".//{qn('wp:docPr')}")
        name = posixpath.basename(str(image_part.partname))
        if posixpath.splitext(name)[1].lower() == ".bin" and doc_pr is not None and doc_pr.get("name"):
            name = doc_pr.get("name")

        description = doc_pr.get("descr", "") if doc_pr is not None else ""
        description = description.split("\n", 1)[0]

        inline.add_literal(f"![{escape_link_text(description)}]({state.options.image_path_prefix}{name})")
        if name not in state.images:
            state.images[name] = image_part.blob
        else:
            logger.debug(f"Image '{name}' already extracted")

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _walk_table(self, state: WalkState, table: Any) -> None:
        rows = table.findall(_w("tr"))
        if not rows:
            logger.debug("Skipping table without rows")
            return

        accumulate = state.options.header_divider_scope == "all_rows"
        alignments: list[str | None] = []
        lines = []

        for index, row in enumerate(rows):
            cells = row.findall(_w("tc"))
            if accumulate:
                if index == 1:
                    lines.append(_divider(alignments, strict=True))
                for cell in cells:
                    alignments.extend(cell_alignment(paragraph) for paragraph in cell.iter(_w("p")))
            elif index == 0:
                alignments = [_first_alignment(cell) for cell in cells]

            lines.append("| " + " | ".join(_cell_text(cell) for cell in cells) + " |")
            if not accumulate and index == 0:
                lines.append(_divider(alignments, strict=False))

        state.blocks.append((None, "\n".join(lines)))


def _w(name: str) -> str:
    from docx.oxml.ns import qn

    return qn(f"w:{name}")


def _local_name(element: Any) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _numbering_element(part: Any) -> Any | None:
    from docx.opc.constants import RELATIONSHIP_TYPE as RT

    try:
        numbering_part = part.part_related_by(RT.NUMBERING)
    except KeyError:
        return None
    return getattr(numbering_part, "_element", None)


def _hyperlink_target(state: WalkState, hyperlink: Any) -> str:
    from docx.oxml.ns import qn

    r_id = hyperlink.get(qn("r:id"))
    anchor = hyperlink.get(qn("w:anchor"))
    target = ""
    if r_id:
        rel = state.part.rels.get(r_id)
        if rel is None:
            logger.debug(f"Hyperlink relationship {r_id} not found")
        else:
            target = rel.target_ref
    if anchor:
        target += f"#{anchor}"
    return target


def _outline_number(state: WalkState, level: int | None) -> str:
    """Next "1.2. " style number for a numbered heading at ``level``."""
    if level is None or level >= _MAX_OUTLINE_LEVELS:
        return ""
    counters = state.outline_counters
    counters[level] += 1
    for index in range(level):
        counters[index] = counters[index] or 1
    for index in range(level + 1, _MAX_OUTLINE_LEVELS):
        counters[index] = 0
    return "".join(f"{counter}." for counter in counters[: level + 1]) + " "


def _wrap(segment: _Segment) -> str:
    if segment.literal or not segment.marker:
        return segment.text
    core = segment.text.strip()
    if not core:
        return segment.text
    leading = segment.text[: len(segment.text) - len(segment.text.lstrip())]
    trailing = segment.text[len(segment.text.rstrip()) :]
    return f"{leading}{segment.marker}{core}{segment.marker}{trailing}"


def _paragraph_text(paragraph: Any) -> str:
    parts = []
    for node in paragraph.iter(_w("t"), _w("tab"), _w("br")):
        if _local_name(node) == "t":
            parts.append(node.text or "")
        elif _local_name(node) == "tab":
            parts.append("\t")
        else:
            parts.append("\n")
    return "".join(parts)


def _cell_text(cell: Any) -> str:
    texts = [_paragraph_text(paragraph).strip() for paragraph in cell.iter(_w("p"))]
    return escape_table_cell(" ".join(text for text in texts if text))


def _first_alignment(cell: Any) -> str | None:
    paragraph = cell.find(_w("p"))
    return cell_alignment(paragraph) if paragraph is not None else None


def _divider(alignments: list[str | None], strict: bool) -> str:
    """Header divider line; in strict mode alignments other than left/center/right/normal are dropped."""
    cells = []
    for value in alignments:
        if value in _DIVIDER_CELLS:
            cells.append(_DIVIDER_CELLS[value])
        elif not strict or value in (None, "normal"):
            cells.append("---|")
    return "|" + "".join(cells)


def _join_blocks(blocks: list[tuple[BlockKind | None, str]]) -> str:
    parts = []
    previous: BlockKind | None = None
    for kind, text in blocks:
        if parts:
            tight = kind is BlockKind.LIST_ITEM and previous is BlockKind.LIST_ITEM
            parts.append("\n" if tight else "\n\n")
        parts.append(text)
        previous = kind
    return "".join(parts) + "\n" if parts else ""
