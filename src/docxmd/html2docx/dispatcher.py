#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/dispatcher.py
"""HTML to DOCX conversion engine.

The HTML is flattened into tag and text events; each event is dispatched to
a handler keyed by tag name (``"p"``) or closing tag (``"/p"``). Handlers
share one ``ConversionState`` that holds the paragraph being built, the
buffer of runs not yet placed in it, the inherited formatting stacks, the
list and table bookkeeping and the produced blocks.

Handlers that need the content of their element (headings, list items,
links, definitions, captions) pull events from the same stream until their
closing tag, so nesting is handled by recursion over a single cursor.

"""

from __future__ import annotations

import logging
import re
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from docxmd.constants import (
    BLOCKQUOTE_BORDER,
    BLOCKQUOTE_INDENT,
    CAPTION_STYLE,
    CHECKBOX_CHECKED_CODE,
    CHECKBOX_CHECKED_GLYPH,
    CHECKBOX_FONT,
    CHECKBOX_UNCHECKED_CODE,
    CHECKBOX_UNCHECKED_GLYPH,
    CODE_BORDER,
    CODE_INDENT,
    CODE_SHADING_FILL,
    CODE_TAB_COUNT,
    CODE_TAB_STEP,
    DEFINITION_FIRST_LINE_INDENT,
    DEPS_HTML2DOCX,
    HEADING_NUMBER_PATTERN,
    HEADING_STYLE_PREFIX,
    HR_BORDER_SIZE,
    HR_SPACING_BEFORE,
    HYPERLINK_STYLE,
    LIST_INDENT_TWIPS,
    LIST_PARAGRAPH_STYLE,
    PARAGRAPH_BEFORE_LINES,
    QUOTE_CHAR_STYLE,
    QUOTE_PREFIX,
    QUOTE_SUFFIX,
    TABLE_STYLE,
    WORD14_NS,
    WORDPROCESSING_NS,
)
from docxmd.html2docx.images import ImageEmbedder, add_hyperlink_click, has_drawing
from docxmd.html2docx.notes import NotesCollection
from docxmd.html2docx.numbering import NumberingTracker, numbering_properties
from docxmd.html2docx.oxml import (
    element_text,
    find_property,
    get_or_add_properties,
    has_content,
    local_name,
    make_borders,
    make_element,
    make_margins,
    new_paragraph,
    new_run,
    new_text,
    set_element_property,
    set_property,
)
from docxmd.html2docx.styles import StyleRegistry, StyleTagStack, code_run_fragments, justification, run_fragments
from docxmd.html2docx.tables import TableContextStack
from docxmd.html2docx.tokenizer import EventStream, TagEvent, TextEvent, tokenize
from docxmd.html2docx.units import HtmlColor, Unit, UnitMetric, parse_alignment
from docxmd.options.docx import HtmlToDocxOptions
from docxmd.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_URI_SCHEME = re.compile(r"^(?P<scheme>[a-zA-Z][a-zA-Z0-9+.\-]*):(?P<rest>.+)$", re.DOTALL)
_HEADING_NUMBER = re.compile(HEADING_NUMBER_PATTERN)

_WRITING_MODES = {"tb-lr": "btLr", "vertical-lr": "btLr", "tb-rl": "tbRl", "vertical-rl": "tbRl"}

# Inline tags mapped to the run properties they switch on
_INLINE_FORMATS: dict[str, tuple[str, dict[str, str]]] = {
    "b": ("b", {}),
    "strong": ("b", {}),
    "i": ("i", {}),
    "em": ("i", {}),
    "dfn": ("i", {}),
    "var": ("i", {}),
    "u": ("u", {"val": "single"}),
    "ins": ("u", {"val": "single"}),
    "s": ("strike", {}),
    "strike": ("strike", {}),
    "del": ("strike", {}),
    "sub": ("vertAlign", {"val": "subscript"}),
    "sup": ("vertAlign", {"val": "superscript"}),
    "mark": ("highlight", {"val": "yellow"}),
}
_MONOSPACE_TAGS = ("kbd", "samp", "tt")


class BlockSequence:
    """Blocks produced by the conversion, in document order.

    While a table is open, blocks are appended to its current cell instead.
    """

    def __init__(self, tables: TableContextStack):
        self.blocks: list[Any] = []
        self._tables = tables

    def add(self, block: Any) -> Any:
        if self._tables.has_context:
            context = self._tables.current
            cell = context.current_cell
            if cell is not None:
                cell.append(block)
                return block
            self.insert_relative(context.table, block, before=True)
            return block
        self.blocks.append(block)
        return block

    def _index(self, block: Any) -> int | None:
        for index, candidate in enumerate(self.blocks):
            if candidate is block:
                return index
        return None

    def previous(self, block: Any) -> Any | None:
        """The block placed right before ``block``."""
        index = self._index(block)
        if index is None:
            return block.getprevious()
        return self.blocks[index - 1] if index > 0 else None

    def insert_relative(self, anchor: Any, block: Any, before: bool) -> None:
        index = self._index(anchor)
        if index is None:
            if before:
                anchor.addprevious(block)
            else:
                anchor.addnext(block)
            return
        self.blocks.insert(index if before else index + 1, block)

    def remove(self, block: Any) -> None:
        index = self._index(block)
        if index is not None:
            del self.blocks[index]
        elif block.getparent() is not None:
            block.getparent().remove(block)


class ParagraphBuilder:
    """The paragraph being built and the runs waiting to be placed in it.

    Runs are buffered in ``elements`` and only moved into ``current`` when
    the paragraph is completed, so handlers can still take them over (a
    heading or a link wraps whatever its content produced).
    """

    def __init__(self, output: BlockSequence, paragraph_styles: StyleTagStack):
        self._output = output
        self._paragraph_styles = paragraph_styles
        self.elements: list[Any] = []
        self.current = new_paragraph()
        output.add(self.current)

    @property
    def is_pristine(self) -> bool:
        """True when nothing has been written to the current paragraph yet."""
        return not self.elements and not has_content(self.current)

    def add(self, element: Any) -> None:
        self.elements.append(element)

    def extend(self, elements: list[Any]) -> None:
        self.elements.extend(elements)

    def take_elements(self) -> list[Any]:
        elements, self.elements = self.elements, []
        return elements

    def attach(self, paragraph: Any) -> None:
        """Continue writing into an already placed paragraph."""
        self.current = paragraph

    def start_new(self) -> Any:
        self.current = new_paragraph()
        self._output.add(self.current)
        return self.current

    def complete(self, create_new: bool = False) -> None:
        """Move the pending runs into the current paragraph, optionally starting a new one."""
        if self.elements:
            self._paragraph_styles.apply(self.current)
            for element in self.elements:
                self.current.append(element)
            self.elements = []
        if create_new:
            self.start_new()

    def last_text(self) -> str:
        source = self.elements[-1] if self.elements else self.current
        texts = [node.text or "" for node in source.iter() if local_name(node) == "t"]
        return texts[-1] if texts else ""


@dataclass
class ListItemState:
    """An ``<li>`` being processed; ``checkbox`` when it opens with a task checkbox."""

    checkbox: bool
    checked: bool = False
    seen_checkbox: bool = False


@dataclass
class ConversionState:
    """Everything the tag handlers share during one conversion."""

    document: Any
    options: HtmlToDocxOptions
    styles: StyleRegistry
    numbering: NumberingTracker
    tables: TableContextStack
    images: ImageEmbedder
    notes: NotesCollection
    output: BlockSequence
    builder: ParagraphBuilder
    runs: StyleTagStack
    paragraphs: StyleTagStack
    preformatted: int = 0
    preformatted_start: bool = False
    figure_count: int = 0
    table_caption_count: int = 0
    list_items: list[ListItemState] = field(default_factory=list)
    div_modes: list[bool] = field(default_factory=list)

    @classmethod
    def create(cls, document: Any, options: HtmlToDocxOptions, images: Mapping[str, str]) -> ConversionState:
        styles = StyleRegistry(document)
        tables = TableContextStack()
        output = BlockSequence(tables)
        paragraphs = StyleTagStack()
        return cls(
            document=document,
            options=options,
            styles=styles,
            numbering=NumberingTracker(document),
            tables=tables,
            images=ImageEmbedder(document, images, options),
            notes=NotesCollection(document, styles),
            output=output,
            builder=ParagraphBuilder(output, paragraphs),
            runs=StyleTagStack(),
            paragraphs=paragraphs,
        )


Handler = Callable[[ConversionState, EventStream, TagEvent], None]


class HtmlToDocxConverter:
    """Convert an HTML fragment into the body of a Word document.

    Parameters
    ----------
    options : HtmlToDocxOptions, optional
        Conversion options
    images : mapping, optional
        Hex image side-table keyed by ``images/<src>``

    Examples
    --------
        >>> converter = HtmlToDocxConverter()
        >>> document = converter.convert("<h1>Title</h1><p>Hello <b>world</b></p>")
        >>> document.save("out.docx")

    """

    def __init__(self, options: HtmlToDocxOptions | None = None, images: Mapping[str, str] | None = None):
        self.options = options or HtmlToDocxOptions()
        self.images = dict(images or {})
        self._handlers: dict[str, Handler] = {
            "a": self._open_link,
            "abbr": self._open_acronym,
            "acronym": self._open_acronym,
            "blockquote": self._open_blockquote,
            "br": self._open_break,
            "caption": self._open_caption,
            "cite": self._open_cite,
            "code": self._open_code,
            "dd": self._open_definition,
            "div": self._open_div,
            "/div": self._close_div,
            "dl": self._open_definition_list,
            "/dl": self._close_paragraph,
            "dt": self._open_definition_term,
            "/dt": self._close_paragraph,
            "figcaption": self._open_figcaption,
            "hr": self._open_horizontal_rule,
            "img": self._open_image,
            "input": self._open_input,
            "li": self._open_list_item,
            "ol": self._open_list,
            "/ol": self._close_list,
            "ul": self._open_list,
            "/ul": self._close_list,
            "p": self._open_paragraph,
            "/p": self._close_paragraph,
            "pre": self._open_pre,
            "/pre": self._close_pre,
            "q": self._open_quote,
            "/q": self._close_quote,
            "table": self._open_table,
            "/table": self._close_table,
            "tr": self._open_table_row,
            "/tr": self._close_table_row,
            "td": self._open_table_cell,
            "/td": self._close_table_cell,
            "th": self._open_table_cell,
            "/th": self._close_table_cell,
        }
        for level in range(1, 7):
            self._handlers[f"h{level}"] = self._open_heading
        for name in (*_INLINE_FORMATS, *_MONOSPACE_TAGS, "span", "font", "small", "big"):
            self._handlers[name] = self._open_inline

    @requires_dependencies("html2docx", DEPS_HTML2DOCX)
    def convert(self, html: str, document: Any = None) -> Any:
        """Convert ``html`` and append the result to ``document``.

        Parameters
        ----------
        html : str
            HTML fragment or full document
        document : docx.document.Document, optional
            Target document; a new one is created from ``template_path`` (or
            python-docx's default template) when omitted

        Returns
        -------
        docx.document.Document
            The document holding the converted content

        Raises
        ------
        UnsupportedImageFormatError
            If an ``<img>`` has an extension that cannot be embedded

        """
        from docx import Document

        if document is None:
            document = Document(self.options.template_path) if self.options.template_path else Document()

        events = tokenize(html, self.options.html_parser)
        logger.debug(f"Tokenized HTML into {len(events)} events")

        state = ConversionState.create(document, self.options, self.images)
        self._process_chunks(state, EventStream(events))
        self._finish(state)

        if state.images.placeholders:
            logger.info(f"{state.images.placeholders} image(s) replaced by a placeholder")
        return document

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def _process_chunks(self, state: ConversionState, stream: EventStream, until: str | None = None) -> None:
        """Dispatch events until the closing tag ``until`` (consumed) or the end of the stream."""
        for event in stream:
            if isinstance(event, TextEvent):
                self._process_text(state, event.text)
                continue
            if until is not None and event.is_closing and event.name == until:
                return
            handler = self._handlers.get(event.key)
            if handler is not None:
                handler(state, stream, event)
            elif event.is_closing:
                self._close_generic(state, stream, event)

    def _process_content(self, state: ConversionState, stream: EventStream, event: TagEvent) -> list[Any]:
        """Process the content of ``event`` and hand back the runs it produced."""
        if event.self_closing:
            return []
        if state.builder.elements:
            state.builder.complete()
        self._process_chunks(state, stream, until=event.name)
        return state.builder.take_elements()

    def _process_text(self, state: ConversionState, text: str) -> None:
        if state.preformatted:
            self._process_preformatted_text(state, text)
            return

        text = _WHITESPACE.sub(" ", text)
        if text.startswith(" ") and _at_line_start(state.builder):
            text = text.lstrip()
        if text:
            state.builder.add(state.runs.apply(new_run(text)))

    def _process_preformatted_text(self, state: ConversionState, text: str) -> None:
        if state.preformatted_start and text.startswith("\n"):
            text = text[1:]
        state.preformatted_start = False

        for index, line in enumerate(text.split("\n")):
            if index:
                state.builder.add(new_run(children=[make_element("br")]))
            if line:
                run = make_element("r")
                for position, segment in enumerate(line.split("\t")):
                    if position:
                        run.append(make_element("tab"))
                    if segment:
                        run.append(new_text(segment))
                state.builder.add(state.runs.apply(run))

    def _close_generic(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.runs.end_tag(event.name)
        state.paragraphs.end_tag(event.name)

    def _finish(self, state: ConversionState) -> None:
        from docx.oxml.ns import qn

        state.builder.complete()
        blocks = [block for block in state.output.blocks if local_name(block) != "p" or has_content(block)]

        body = state.document.element.body
        section = body.find(qn("w:sectPr"))
        if not blocks and body.find(qn("w:p")) is None:
            blocks = [new_paragraph()]
        for block in blocks:
            if section is not None:
                section.addprevious(block)
            else:
                body.append(block)
        logger.debug(f"Wrote {len(blocks)} block(s) to the document body")

    # ------------------------------------------------------------------
    # Inline formatting
    # ------------------------------------------------------------------

    def _open_inline(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        fragments = []
        if event.name in _INLINE_FORMATS:
            tag, attrs = _INLINE_FORMATS[event.name]
            fragments.append(make_element(tag, attrs))
        elif event.name in _MONOSPACE_TAGS:
            fragments.extend(code_run_fragments())
        fragments.extend(run_fragments(event, state.styles))
        state.runs.begin_tag(event.name, fragments)

    def _open_cite(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        fragments = run_fragments(event, state.styles)
        style_id = state.styles.get_style(QUOTE_CHAR_STYLE, "character")
        if style_id:
            fragments.insert(0, make_element("rStyle", {"val": style_id}))
        state.runs.begin_tag("cite", fragments)

    def _open_code(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if state.preformatted:
            _apply_code_block(state.builder.current)
            state.runs.begin_tag("code")
        else:
            state.runs.begin_tag("code", code_run_fragments() + run_fragments(event, state.styles))

    def _open_quote(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        fragments = run_fragments(event, state.styles)
        style_id = state.styles.get_style(QUOTE_CHAR_STYLE, "character")
        if style_id:
            fragments.insert(0, make_element("rStyle", {"val": style_id}))
        state.runs.begin_tag("q", fragments)
        state.builder.add(state.runs.apply(new_run(QUOTE_PREFIX)))

    def _close_quote(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.add(state.runs.apply(new_run(QUOTE_SUFFIX)))
        state.runs.end_tag("q")

    def _open_break(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.add(new_run(children=[make_element("br")]))

    def _open_image(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        run = state.images.embed(event)
        if run is not None:
            state.builder.add(run)

    def _open_input(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if (event.attributes["type"] or "").lower() != "checkbox":
            return
        checked = "checked" in event.attributes
        if state.list_items and state.list_items[-1].checkbox and not state.list_items[-1].seen_checkbox:
            item = state.list_items[-1]
            item.checked = checked
            item.seen_checkbox = True
            return
        state.builder.extend(_checkbox_elements(checked))

    def _open_acronym(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        title = (event.attributes["title"] or "").strip()
        if not title:
            return
        elements = self._process_content(state, stream, event)
        if elements:
            elements.append(state.notes.add_note(state.options.acronym_position, title))
        state.builder.extend(elements)

    def _open_link(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        from docx.opc.constants import RELATIONSHIP_TYPE as RT

        href = (event.attributes["href"] or "").strip()
        hyperlink = None
        r_id = None

        if href.lower().startswith("www."):
            href = "http://" + href

        if href.startswith("#") and len(href) > 1:
            if not state.options.exclude_link_anchor or href == "#_top":
                hyperlink = make_element("hyperlink", {"anchor": href[1:], "history": 1})
        elif href:
            match = _URI_SCHEME.match(href)
            scheme = match.group("scheme").lower() if match else ""
            if len(scheme) > 1 and scheme != "javascript":
                r_id = state.document.part.relate_to(href, RT.HYPERLINK, is_external=True)
                hyperlink = make_element("hyperlink", {"r:id": r_id, "history": 1})
            elif scheme == "javascript":
                logger.debug("Ignoring javascript: link")

        if hyperlink is None:
            # Content stays, the link itself is dropped
            return

        title = event.attributes["title"]
        if title:
            hyperlink.set(_w("tooltip"), title)

        elements = self._process_content(state, stream, event)
        if not elements:
            return

        style_id = state.styles.get_style(HYPERLINK_STYLE, "character")
        segments: list[Any] = []
        current_link = None
        contains_image = False
        for element in elements:
            if has_drawing(element):
                contains_image = True
                doc_pr = element.find(f".//{_qn('wp:docPr')}")
                add_hyperlink_click(element, r_id, doc_pr.get("descr") if doc_pr is not None else None)
                segments.append(element)
                current_link = None
                continue
            if current_link is None:
                current_link = deepcopy(hyperlink)
                segments.append(current_link)
            runs = list(element) if local_name(element) == "hyperlink" else [element]
            for run in runs:
                if style_id and local_name(run) == "r" and find_property(run, "rStyle") is None:
                    set_element_property(run, make_element("rStyle", {"val": style_id}))
                current_link.append(run)

        state.builder.extend(segments)
        if contains_image:
            state.builder.complete(create_new=True)

    # ------------------------------------------------------------------
    # Paragraph-level blocks
    # ------------------------------------------------------------------

    def _open_paragraph(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        builder = state.builder
        if event.parent == "li" and builder.is_pristine:
            # Loose list items keep writing into the list item paragraph
            paragraph = builder.current
        else:
            builder.complete(create_new=True)
            paragraph = builder.current
            set_element_property(paragraph, make_element("spacing", {"beforeLines": PARAGRAPH_BEFORE_LINES}))

        style_id = _class_style(state, event, "paragraph")
        if style_id:
            set_element_property(paragraph, make_element("pStyle", {"val": style_id}))
        if event.parent == "blockquote":
            _apply_blockquote(paragraph)
        jc = justification(event)
        if jc is not None:
            set_element_property(paragraph, jc)

        state.runs.begin_tag(event.name, run_fragments(event, state.styles))
        state.paragraphs.begin_tag(event.name)

    def _close_paragraph(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete(create_new=True)
        self._close_generic(state, stream, event)

    def _open_heading(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        level = int(event.name[1])
        elements = self._process_content(state, stream, event)

        paragraph = new_paragraph()
        style_id = state.styles.get_style(f"{HEADING_STYLE_PREFIX}{level}", "paragraph")
        if style_id:
            set_element_property(paragraph, make_element("pStyle", {"val": style_id}))
        jc = justification(event)
        if jc is not None:
            set_element_property(paragraph, jc)

        if state.options.heading_numbering and elements:
            number_level = _strip_heading_number(elements[0])
            if number_level:
                state.numbering.apply_heading_numbering(paragraph, number_level)

        state.paragraphs.apply(paragraph)
        paragraph.extend(elements)
        state.output.add(paragraph)
        state.builder.start_new()

    def _open_horizontal_rule(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete(create_new=True)
        paragraph = state.builder.current

        previous = state.output.previous(paragraph)
        while previous is not None and _is_blank_paragraph(previous):
            previous = state.output.previous(previous)
        if previous is not None and (local_name(previous) == "tbl" or _bottom_border_size(previous) > 0):
            set_element_property(paragraph, make_element("spacing", {"before": HR_SPACING_BEFORE}))

        top = event.styles.get_as_border().top
        if top.is_valid:
            attrs = top.ooxml_attributes()
        else:
            attrs = {"val": "single", "sz": HR_BORDER_SIZE, "space": 1, "color": "auto"}
        set_element_property(paragraph, make_borders("pBdr", {"top": attrs}))
        paragraph.append(new_run())
        state.builder.start_new()

    def _open_blockquote(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete(create_new=True)
        _apply_blockquote(state.builder.current)
        self._process_chunks(state, stream, until="blockquote")
        state.builder.complete(create_new=True)
        state.paragraphs.end_tag("blockquote")

    def _open_pre(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete(create_new=True)
        state.preformatted += 1
        state.preformatted_start = True
        state.runs.begin_tag("pre", code_run_fragments())

    def _close_pre(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        builder = state.builder
        while builder.elements and _is_break_run(builder.elements[-1]):
            builder.elements.pop()
        state.preformatted = max(0, state.preformatted - 1)
        builder.complete(create_new=True)
        self._close_generic(state, stream, event)

    def _open_div(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        border = event.styles.get_as_border()
        paragraph_mode = bool(event.attributes["align"] or event.styles["text-align"] or not border.is_empty)
        state.div_modes.append(paragraph_mode)

        if paragraph_mode:
            state.builder.complete(create_new=True)
            paragraph = state.builder.current
            jc = justification(event)
            if jc is not None:
                set_element_property(paragraph, jc)
            if not border.is_empty:
                sides = {name: side.ooxml_attributes() for name, side in border.sides().items() if side.is_valid}
                set_element_property(paragraph, make_borders("pBdr", sides))
        elif state.builder.elements:
            state.builder.complete()
        state.runs.begin_tag("div", run_fragments(event, state.styles))

    def _close_div(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        paragraph_mode = state.div_modes.pop() if state.div_modes else False
        if paragraph_mode:
            state.builder.complete(create_new=True)
        elif state.builder.elements:
            state.builder.add(new_run(children=[make_element("br")]))
        self._close_generic(state, stream, event)

    def _open_definition_list(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete(create_new=True)
        set_element_property(state.builder.current, make_element("spacing", {"after": 0}))

    def _open_definition_term(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete(create_new=True)
        set_element_property(state.builder.current, make_element("spacing", {"after": 0}))
        state.runs.begin_tag("dt", [make_element("b"), *run_fragments(event, state.styles)])

    def _open_definition(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        elements = self._process_content(state, stream, event)
        paragraph = new_paragraph()
        set_element_property(paragraph, make_element("spacing", {"after": 0}))
        set_element_property(paragraph, make_element("ind", {"firstLine": DEFINITION_FIRST_LINE_INDENT}))
        state.paragraphs.apply(paragraph)
        paragraph.extend(elements)
        state.output.add(paragraph)
        state.builder.start_new()

    def _open_figcaption(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        elements = self._process_content(state, stream, event)
        state.figure_count += 1

        paragraph = new_paragraph()
        style_id = state.styles.get_style(CAPTION_STYLE, "paragraph")
        if style_id:
            set_element_property(paragraph, make_element("pStyle", {"val": style_id}))
        set_element_property(paragraph, make_element("keepNext"))
        jc = justification(event)
        if jc is not None:
            set_element_property(paragraph, jc)

        paragraph.append(new_run("Figure "))
        paragraph.append(_simple_field(" SEQ Figure \\* ARABIC ", str(state.figure_count)))
        if elements:
            paragraph.append(new_run(" "))
            paragraph.extend(elements)
        state.output.add(paragraph)
        state.builder.start_new()

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _open_list(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.builder.complete()
        state.numbering.begin_list(event)

    def _close_list(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        state.numbering.end_list()
        if state.numbering.level == 0:
            state.builder.complete(create_new=True)
        self._close_generic(state, stream, event)

    def _open_list_item(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        builder = state.builder
        builder.complete()
        paragraph = builder.start_new()

        frame = state.numbering.process_item()
        level = state.numbering.level
        item = ListItemState(checkbox=event.next_tag == "input")

        if item.checkbox:
            style_id = state.styles.get_style(LIST_PARAGRAPH_STYLE, "paragraph")
        else:
            style_id = _list_item_style(state, event)
        if style_id:
            set_element_property(paragraph, make_element("pStyle", {"val": style_id}))
        if not item.checkbox:
            set_element_property(paragraph, numbering_properties(frame.num_id, level - 1))
            if level >= 2:
                set_element_property(paragraph, make_element("ind", {"left": level * LIST_INDENT_TWIPS}))
        jc = justification(event)
        if jc is not None:
            set_element_property(paragraph, jc)

        state.list_items.append(item)
        state.runs.begin_tag("li", run_fragments(event, state.styles))
        self._process_chunks(state, stream, until="li")
        state.runs.end_tag("li")
        state.list_items.pop()

        if item.checkbox:
            # Right after w:pPr, ahead of the item text
            get_or_add_properties(paragraph)
            for offset, element in enumerate(_checkbox_elements(item.checked)):
                paragraph.insert(1 + offset, element)
        state.paragraphs.apply(paragraph)
        paragraph.extend(builder.take_elements())

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _open_table(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        table = make_element("tbl")
        properties = get_or_add_properties(table)

        default_style = state.styles.get_style(TABLE_STYLE, "table")
        style_id = _class_style(state, event, "table") or default_style
        if style_id:
            set_property(properties, make_element("tblStyle", {"val": style_id}))

        width = event.styles.get_as_unit("width")
        if not width.is_valid:
            width = event.attributes.get_as_unit("width")
        if width.metric is UnitMetric.PERCENT:
            set_property(properties, make_element("tblW", {"w": int(width.value * 50), "type": "pct"}))
        elif width.is_fixed and width.value > 0:
            set_property(properties, make_element("tblW", {"w": width.value_in_dxa, "type": "dxa"}))
        else:
            set_property(properties, make_element("tblW", {"w": 0, "type": "auto"}))

        alignment = parse_alignment(event.attributes["align"])
        margin = event.styles.get_as_margin("margin")
        if alignment is None and margin.left.metric is UnitMetric.AUTO:
            alignment = "center" if margin.right.metric is UnitMetric.AUTO else "right"
        if alignment in ("left", "center", "right"):
            set_property(properties, make_element("jc", {"val": alignment}))
        if alignment in (None, "left") and margin.left.is_fixed and margin.left.value > 0:
            set_property(properties, make_element("tblInd", {"w": margin.left.value_in_dxa, "type": "dxa"}))

        spacing = event.attributes.get_as_unit("cellspacing")
        if spacing.is_fixed and spacing.value > 0:
            set_property(properties, make_element("tblCellSpacing", {"w": spacing.value_in_dxa, "type": "dxa"}))

        borders = _table_borders(state, event, style_id, default_style)
        if borders is not None:
            set_property(properties, borders)

        padding = event.attributes.get_as_unit("cellpadding")
        if padding.is_fixed and padding.value >= 0:
            sides = {side: (padding.value_in_dxa, "dxa") for side in ("top", "left", "bottom", "right")}
            set_property(properties, make_margins("tblCellMar", sides))

        state.builder.complete()
        state.output.add(table)
        state.tables.push(table)
        state.runs.begin_tag("table", run_fragments(event, state.styles))

    def _close_table(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if not state.tables.has_context:
            return
        state.builder.complete()
        context = state.tables.pop()
        if not context.close_table():
            logger.debug("Dropping table without rows")
            state.output.remove(context.table)
        self._close_generic(state, stream, event)
        state.builder.start_new()

    def _open_caption(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        elements = self._process_content(state, stream, event)
        if not state.tables.has_context:
            state.builder.extend(elements)
            return

        table = state.tables.current.table
        state.table_caption_count += 1

        legend = new_paragraph()
        style_id = state.styles.get_style(CAPTION_STYLE, "paragraph")
        if style_id:
            set_element_property(legend, make_element("pStyle", {"val": style_id}))
        jc = justification(event)
        if jc is None:
            table_jc = find_property(table, "jc")
            if table_jc is not None:
                jc = deepcopy(table_jc)
        if jc is not None:
            set_element_property(legend, jc)

        legend.append(new_run("Table "))
        legend.extend(_complex_field(" SEQ TABLE \\* ARABIC ", str(state.table_caption_count)))
        if elements:
            legend.append(new_run(" "))
            legend.extend(elements)

        above = state.options.table_caption_position == "above"
        state.output.insert_relative(table, legend, before=above)

    def _open_table_row(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if not state.tables.has_context:
            logger.debug("Ignoring <tr> outside of a table")
            return
        row = make_element("tr")
        height = event.styles.get_as_unit("height")
        if not height.is_valid:
            height = event.attributes.get_as_unit("height")
        if height.is_fixed and height.value > 0:
            set_element_property(row, make_element("trHeight", {"val": height.value_in_dxa, "hRule": "atLeast"}))
        state.tables.current.start_row(row)
        state.runs.begin_tag("tr", run_fragments(event, state.styles))

    def _close_table_row(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if state.tables.has_context:
            state.tables.current.close_row()
        self._close_generic(state, stream, event)

    def _open_table_cell(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if not state.tables.has_context:
            logger.debug(f"Ignoring <{event.name}> outside of a table")
            return
        context = state.tables.current
        if context.current_row is None:
            context.start_row(make_element("tr"))

        cell = make_element("tc")
        properties = get_or_add_properties(cell)

        width = event.styles.get_as_unit("width")
        if not width.is_valid:
            width = event.attributes.get_as_unit("width")
        if width.metric is UnitMetric.PERCENT:
            set_property(properties, make_element("tcW", {"w": int(width.value * 50), "type": "pct"}))
        elif width.is_fixed and width.value > 0:
            set_property(properties, make_element("tcW", {"w": width.value_in_dxa, "type": "dxa"}))

        col_span = event.attributes.get_as_int("colspan") or 1
        if col_span > 1:
            set_property(properties, make_element("gridSpan", {"val": col_span}))
        row_span = event.attributes.get_as_int("rowspan") or 1
        if row_span > 1:
            set_property(properties, make_element("vMerge", {"val": "restart"}))
            context.register_row_span(row_span, col_span)

        border = event.styles.get_as_border()
        if not border.is_empty:
            sides = {name: side.ooxml_attributes() for name, side in border.sides().items() if side.is_valid}
            set_property(properties, make_borders("tcBorders", sides))

        background = event.styles["background-color"] or event.attributes["bgcolor"]
        fill = _hex_color(background)
        if fill:
            set_property(properties, make_element("shd", {"val": "clear", "color": "auto", "fill": fill}))

        padding = event.styles.get_as_margin("padding")
        if not padding.is_empty:
            sides = {
                side: (getattr(padding, side).value_in_dxa, "dxa")
                for side in ("top", "left", "bottom", "right")
                if getattr(padding, side).is_fixed
            }
            if sides:
                set_property(properties, make_margins("tcMar", sides))

        paragraph_fragments = []
        direction = _WRITING_MODES.get((event.styles["writing-mode"] or "").lower())
        if direction:
            set_property(properties, make_element("textDirection", {"val": direction}))
            paragraph_fragments.append(make_element("jc", {"val": "center"}))
        set_property(properties, make_element("vAlign", {"val": "center"}))

        jc = justification(event)
        if jc is not None:
            paragraph_fragments.insert(0, jc)

        height = event.styles.get_as_unit("height")
        if height.is_fixed and height.value > 0 and find_property(context.current_row, "trHeight") is None:
            row_height = make_element("trHeight", {"val": height.value_in_dxa, "hRule": "atLeast"})
            set_element_property(context.current_row, row_height)

        context.current_row.append(cell)

        run_properties = [make_element("b")] if event.name == "th" else []
        run_properties.extend(run_fragments(event, state.styles))
        state.runs.begin_tag(event.name, run_properties)
        state.paragraphs.begin_tag(event.name, paragraph_fragments)
        state.builder.start_new()

    def _close_table_cell(self, state: ConversionState, stream: EventStream, event: TagEvent) -> None:
        if not state.tables.has_context:
            state.builder.add(state.runs.apply(new_run(" ")))
            return

        context = state.tables.current
        cell = context.current_cell
        if cell is not None:
            for paragraph in [child for child in cell if local_name(child) == "p"]:
                if not has_content(paragraph):
                    cell.remove(paragraph)

            elements = state.builder.take_elements()
            children = [child for child in cell if local_name(child) != "tcPr"]
            if elements or not children or local_name(children[-1]) != "p":
                paragraph = new_paragraph()
                state.paragraphs.apply(paragraph)
                paragraph.extend(elements)
                cell.append(paragraph)
            state.builder.attach([child for child in cell if local_name(child) == "p"][-1])
            context.close_cell()

        self._close_generic(state, stream, event)


def _w(name: str) -> str:
    return _qn(f"w:{name}")


def _qn(tag: str) -> str:
    from docx.oxml.ns import qn

    return qn(tag)


def _class_style(state: ConversionState, event: TagEvent, style_type: str) -> str | None:
    for class_name in event.attributes.get_as_classes():
        style_id = state.styles.get_style(class_name, style_type, ignore_case=True)
        if style_id:
            return style_id
    return None


def _list_item_style(state: ConversionState, event: TagEvent) -> str | None:
    """Paragraph style of a list item: its own class, then the classes of the enclosing lists."""
    style_id = _class_style(state, event, "paragraph")
    if style_id:
        return style_id
    for class_name in state.numbering.class_chain:
        style_id = state.styles.get_style(class_name, "paragraph", ignore_case=True)
        if style_id:
            return style_id
    return state.styles.get_style(LIST_PARAGRAPH_STYLE, "paragraph")


def _apply_blockquote(paragraph: Any) -> None:
    set_element_property(paragraph, make_borders("pBdr", {"left": BLOCKQUOTE_BORDER}))
    set_element_property(paragraph, make_element("ind", {"left": BLOCKQUOTE_INDENT, "right": BLOCKQUOTE_INDENT}))


def _apply_code_block(paragraph: Any) -> None:
    sides = {side: CODE_BORDER for side in ("top", "left", "bottom", "right")}
    set_element_property(paragraph, make_borders("pBdr", sides))
    set_element_property(paragraph, make_element("shd", {"val": "clear", "color": "auto", "fill": CODE_SHADING_FILL}))
    tabs = [make_element("tab", {"val": "left", "pos": CODE_TAB_STEP * n}) for n in range(1, CODE_TAB_COUNT + 1)]
    set_element_property(paragraph, make_element("tabs", children=tabs))
    set_element_property(paragraph, make_element("spacing", {"beforeLines": PARAGRAPH_BEFORE_LINES}))
    set_element_property(paragraph, make_element("ind", {"left": CODE_INDENT, "right": CODE_INDENT}))


def _is_blank_paragraph(block: Any) -> bool:
    return local_name(block) == "p" and not has_content(block) and _bottom_border_size(block) == 0


def _bottom_border_size(block: Any) -> int:
    if local_name(block) != "p":
        return 0
    borders = find_property(block, "pBdr")
    bottom = borders.find(_w("bottom")) if borders is not None else None
    if bottom is None:
        return 0
    try:
        return int(bottom.get(_w("sz"), "0"))
    except ValueError:
        return 0


def _at_line_start(builder: ParagraphBuilder) -> bool:
    """Whether leading whitespace would open a line (after a block boundary, a break or a space)."""
    if not builder.elements or _is_break_run(builder.elements[-1]):
        return True
    return builder.last_text().endswith(" ")


def _is_break_run(element: Any) -> bool:
    if local_name(element) != "r":
        return False
    content = [child for child in element if local_name(child) != "rPr"]
    return bool(content) and all(local_name(child) == "br" for child in content)


def _strip_heading_number(element: Any) -> int:
    """Remove a leading "1.2. " from the text of ``element``; returns the number of levels found."""
    text = element_text(element)
    match = _HEADING_NUMBER.match(text)
    if not match:
        return 0
    level = len(re.findall(r"\d+\.", match.group(0)))
    if not level:
        return 0

    remaining = len(match.group(0))
    for node in element.iter(_w("t")):
        if remaining <= 0:
            break
        value = node.text or ""
        node.text = value[remaining:]
        remaining -= len(value)
    return level


def _checkbox_elements(checked: bool) -> list[Any]:
    """Word 2010 checkbox content control followed by a separating space."""
    from docx.oxml import parse_xml

    glyph = CHECKBOX_CHECKED_GLYPH if checked else CHECKBOX_UNCHECKED_GLYPH
    sdt = parse_xml(
        f'<w:sdt xmlns:w="{WORDPROCESSING_NS}" xmlns:w14="{WORD14_NS}">'
        "<w:sdtPr><w14:checkbox>"
        f'<w14:checked w14:val="{1 if checked else 0}"/>'
        f'<w14:checkedState w14:val="{CHECKBOX_CHECKED_CODE}" w14:font="{CHECKBOX_FONT}"/>'
        f'<w14:uncheckedState w14:val="{CHECKBOX_UNCHECKED_CODE}" w14:font="{CHECKBOX_FONT}"/>'
        "</w14:checkbox></w:sdtPr>"
        "<w:sdtContent><w:r><w:rPr>"
        f'<w:rFonts w:ascii="{CHECKBOX_FONT}" w:eastAsia="{CHECKBOX_FONT}" w:hAnsi="{CHECKBOX_FONT}" w:hint="eastAsia"/>'
        f"</w:rPr><w:t>{glyph}</w:t></w:r></w:sdtContent>"
        "</w:sdt>"
    )
    return [sdt, new_run(" ")]


def _simple_field(instruction: str, result: str) -> Any:
    return make_element("fldSimple", {"instr": instruction}, [new_run(result)])


def _complex_field(instruction: str, result: str) -> list[Any]:
    code = make_element("instrText")
    code.text = instruction
    code.set(_qn("xml:space"), "preserve")
    return [
        new_run(children=[make_element("fldChar", {"fldCharType": "begin"})]),
        new_run(children=[code]),
        new_run(children=[make_element("fldChar", {"fldCharType": "separate"})]),
        new_run(result),
        new_run(children=[make_element("fldChar", {"fldCharType": "end"})]),
    ]


def _table_borders(state: ConversionState, event: TagEvent, style_id: str | None, default_style: str | None) -> Any:
    """``w:tblBorders`` from the ``border`` attribute or CSS, or None to keep the style's borders."""
    width = event.attributes.get_as_int("border")
    if width is not None and width > 0:
        if style_id and style_id != default_style and not state.styles.has_table_borders(style_id):
            size = max(2, min(96, Unit(UnitMetric.PIXEL, width).value_in_eighth_points))
            inside = {"val": "single", "sz": size, "space": 0, "color": "auto"}
            none = {"val": "none"}
            return make_borders(
                "tblBorders",
                {"top": none, "left": none, "bottom": none, "right": none, "insideH": inside, "insideV": inside},
            )
        return None
    if width == 0:
        none = {"val": "none"}
        sides = ("top", "left", "bottom", "right", "insideH", "insideV")
        return make_borders("tblBorders", {side: none for side in sides})

    border = event.styles.get_as_border()
    if border.is_empty:
        return None
    return make_borders(
        "tblBorders", {name: side.ooxml_attributes() for name, side in border.sides().items() if side.is_valid}
    )


def _hex_color(value: str | None) -> str | None:
    color = HtmlColor.parse(value)
    return color.to_hex() if color else None
