#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the docxmd library.

Constants are organized by category:
1. Type Definitions - Literal types used by the options
2. Dependencies - Packages checked by ``requires_dependencies``
3. OOXML Namespaces and Units
4. Default Style Identifiers
5. HTML to DOCX Formatting Defaults
6. DOCX to Markdown Defaults
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

AcronymPosition = Literal["footnote", "endnote"]
CaptionPosition = Literal["above", "below"]
HeaderDividerScope = Literal["header_row", "all_rows"]
HyperlinkPairing = Literal["reference", "positional"]

# =============================================================================
# Dependencies
# =============================================================================

DEPS_DOCX = [("python-docx", "docx", ">=1.2.0")]
DEPS_HTML = [("beautifulsoup4", "bs4", ">=4.14.2")]
DEPS_MARKDOWN = [("mistune", "mistune", ">=3.0.0")]
DEPS_HTML2DOCX = DEPS_DOCX + DEPS_HTML

# =============================================================================
# OOXML Namespaces and Units
# =============================================================================

WORDPROCESSING_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
WORD14_NS = "http://schemas.microsoft.com/office/word/2010/wordml"
RELATIONSHIPS_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
SVG_BLIP_NS = "http://schemas.microsoft.com/office/drawing/2016/SVG/main"
SVG_BLIP_EXT_URI = "{96DAC541-7B7A-43D3-8B79-37D633B846F1}"

# 1 inch = 1440 twips (dxa) = 72 pt = 96 px = 914400 EMU
TWIPS_PER_POINT = 20
EMU_PER_PIXEL = 9525
POINTS_PER_INCH = 72
PIXELS_PER_INCH = 96

# =============================================================================
# Default Style Identifiers
# =============================================================================

HEADING_STYLE_PREFIX = "Heading"
LIST_PARAGRAPH_STYLE = "ListParagraph"
HYPERLINK_STYLE = "Hyperlink"
CAPTION_STYLE = "Caption"
FOOTNOTE_REFERENCE_STYLE = "FootnoteReference"
ENDNOTE_REFERENCE_STYLE = "EndnoteReference"
FOOTNOTE_TEXT_STYLE = "FootnoteText"
ENDNOTE_TEXT_STYLE = "EndnoteText"
QUOTE_CHAR_STYLE = "QuoteChar"
INTENSE_QUOTE_STYLE = "IntenseQuote"
TABLE_STYLE = "TableGrid"

# Style id given to paragraphs without one while walking a document
SINGLE_STYLE_SENTINEL = "single"

# =============================================================================
# HTML to DOCX Formatting Defaults
# =============================================================================

SUPPORTED_IMAGE_EXTENSIONS = (".bmp", ".gif", ".jpg", ".jpeg", ".png", ".svg")
IMAGE_TABLE_KEY_PREFIX = "images/"

# 1x1 transparent PNG shown at PLACEHOLDER_IMAGE_SIZE when an image cannot be resolved
PLACEHOLDER_IMAGE_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/w8AAn8B9FpQHLwAAAAASUVORK5CYII="
PLACEHOLDER_IMAGE_SIZE = (32, 32)

LIST_INDENT_TWIPS = 780
DEFINITION_FIRST_LINE_INDENT = 708
PARAGRAPH_BEFORE_LINES = 250
HR_SPACING_BEFORE = 240
HR_BORDER_SIZE = 4

BLOCKQUOTE_INDENT = 500
BLOCKQUOTE_BORDER = {"val": "single", "sz": "24", "space": "15", "color": "0000FF"}

CODE_INDENT = 500
CODE_BORDER = {"val": "single", "sz": "6", "space": "7", "color": "CCCCCC"}
CODE_SHADING_FILL = "F8F8F8"
CODE_TAB_STEP = 916
CODE_TAB_COUNT = 10
CODE_FONT = "Courier New"

QUOTE_PREFIX = "“"
QUOTE_SUFFIX = "”"

CHECKBOX_FONT = "MS Gothic"
CHECKBOX_CHECKED_CODE = "2612"
CHECKBOX_UNCHECKED_CODE = "2610"
CHECKBOX_CHECKED_GLYPH = "☒"
CHECKBOX_UNCHECKED_GLYPH = "☐"

# Matches manual heading numbering such as "1.2.3 " at the start of a heading
HEADING_NUMBER_PATTERN = r"^(\d+\.)*\s"

DEFAULT_HTML_PARSER = "html.parser"

# =============================================================================
# DOCX to Markdown Defaults
# =============================================================================

DEFAULT_IMAGE_PATH_PREFIX = "../images/"
DEFAULT_CODE_FENCE = "~~~~"
LIST_NESTING_INDENT = "  "
