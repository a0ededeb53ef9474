#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for both DOCX conversion directions.

``HtmlToDocxOptions`` drives the tag dispatcher that builds a Word document
from HTML; ``DocxToMarkdownOptions`` drives the walker that reconstructs
Markdown from a Word document.
"""

from dataclasses import dataclass, field

from docxmd.constants import (
    DEFAULT_CODE_FENCE,
    DEFAULT_HTML_PARSER,
    DEFAULT_IMAGE_PATH_PREFIX,
    PLACEHOLDER_IMAGE_SIZE,
    AcronymPosition,
    CaptionPosition,
    HeaderDividerScope,
    HyperlinkPairing,
)
from docxmd.options.base import BaseConverterOptions


# src/docxmd/options/docx.py
@dataclass(frozen=True)
class HtmlToDocxOptions(BaseConverterOptions):
    """Configuration options for converting HTML into a DOCX document.

    Parameters
    ----------
    acronym_position : {"footnote", "endnote"}, default "footnote"
        Where the ``title`` of ``<acronym>``/``<abbr>`` elements is placed:
        as a footnote at the end of the page or as an endnote at the end of
        the document.
    exclude_link_anchor : bool, default False
        Drop in-document ``#anchor`` links. ``#_top`` is always kept.
    table_caption_position : {"above", "below"}, default "above"
        Placement of ``<caption>`` paragraphs relative to their table.
    template_path : str or None, default None
        Path to a .docx file whose styles and numbering definitions are reused.
    html_parser : str, default "html.parser"
        BeautifulSoup parser backend used to tokenize the HTML.
    placeholder_size_px : tuple of int, default (32, 32)
        Natural size given to the placeholder image.
    heading_numbering : bool, default True
        Promote headings starting with manual numbering ("1.2. Title") to
        natively numbered headings.

    """

    acronym_position: AcronymPosition = field(
        default="footnote",
        metadata={
            "help": "Place acronym titles as page footnotes or document endnotes",
            "choices": ["footnote", "endnote"],
            "importance": "core",
        },
    )
    exclude_link_anchor: bool = field(
        default=False,
        metadata={
            "help": "Drop links to in-document anchors (except #_top)",
            "cli_name": "exclude-link-anchor",
            "importance": "core",
        },
    )
    table_caption_position: CaptionPosition = field(
        default="above",
        metadata={
            "help": "Place table captions above or below their table",
            "choices": ["above", "below"],
            "cli_name": "caption-position",
            "importance": "core",
        },
    )
    template_path: str | None = field(
        default=None,
        metadata={"help": "Path to a .docx template providing styles", "importance": "core"},
    )
    html_parser: str = field(
        default=DEFAULT_HTML_PARSER,
        metadata={
            "help": "BeautifulSoup parser backend",
            "choices": ["html.parser", "lxml", "html5lib"],
            "importance": "advanced",
        },
    )
    placeholder_size_px: tuple[int, int] = field(
        default=PLACEHOLDER_IMAGE_SIZE,
        metadata={"help": "Size in pixels of the placeholder for unresolved images", "importance": "advanced"},
    )
    heading_numbering: bool = field(
        default=True,
        metadata={"help": "Turn manual heading numbers into native numbering", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.acronym_position not in ("footnote", "endnote"):
            raise ValueError(f"acronym_position must be 'footnote' or 'endnote', got {self.acronym_position!r}")
        if self.table_caption_position not in ("above", "below"):
            raise ValueError(
                f"table_caption_position must be 'above' or 'below', got {self.table_caption_position!r}"
            )
        width, height = self.placeholder_size_px
        if width <= 0 or height <= 0:
            raise ValueError(f"placeholder_size_px must be positive, got {self.placeholder_size_px}")


@dataclass(frozen=True)
class DocxToMarkdownOptions(BaseConverterOptions):
    """Configuration options for reconstructing Markdown from a DOCX document.

    Parameters
    ----------
    image_path_prefix : str, default "../images/"
        Prefix written in front of extracted image file names.
    header_divider_scope : {"header_row", "all_rows"}, default "header_row"
        Which cells feed the column alignments of the table header divider.
        ``"all_rows"`` accumulates the justification of every cell walked so
        far, which is how the first implementation behaved.
    hyperlink_pairing : {"reference", "positional"}, default "reference"
        Pair link text with its target through the hyperlink element that
        wraps it, or through the order of hyperlinks in the paragraph.
    code_fence : str, default "~~~~"
        Delimiter used around reconstructed code blocks.

    """

    image_path_prefix: str = field(
        default=DEFAULT_IMAGE_PATH_PREFIX,
        metadata={
            "help": "Prefix for image references in the Markdown output",
            "cli_name": "image-prefix",
            "importance": "core",
        },
    )
    header_divider_scope: HeaderDividerScope = field(
        default="header_row",
        metadata={
            "help": "Derive table column alignment from the header row only or from all rows",
            "choices": ["header_row", "all_rows"],
            "importance": "advanced",
        },
    )
    hyperlink_pairing: HyperlinkPairing = field(
        default="reference",
        metadata={
            "help": "How link text is matched with its target",
            "choices": ["reference", "positional"],
            "importance": "advanced",
        },
    )
    code_fence: str = field(
        default=DEFAULT_CODE_FENCE,
        metadata={"help": "Fence used around code blocks", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.header_divider_scope not in ("header_row", "all_rows"):
            raise ValueError(
                f"header_divider_scope must be 'header_row' or 'all_rows', got {self.header_divider_scope!r}"
            )
        if self.hyperlink_pairing not in ("reference", "positional"):
            raise ValueError(
                f"hyperlink_pairing must be 'reference' or 'positional', got {self.hyperlink_pairing!r}"
            )
        if len(self.code_fence) < 3 or len(set(self.code_fence)) != 1 or self.code_fence[0] not in "`~":
            raise ValueError(f"code_fence must be three or more backticks or tildes, got {self.code_fence!r}")
