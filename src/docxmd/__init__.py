"""docxmd - Markdown to DOCX and DOCX to Markdown conversion.

Markdown is rendered to HTML with mistune, and the HTML is turned into a
Word document by a tag dispatcher that builds WordprocessingML paragraphs,
runs, tables, lists, notes and images through python-docx. The reverse
direction walks a Word document and reconstructs Markdown (headings, lists,
quotes, code blocks, tables, emphasis, links, images and checkboxes) while
extracting the embedded images.

Examples
--------
Markdown to DOCX:

    >>> from docxmd import markdown_to_docx
    >>> data = markdown_to_docx("# Title\\n\\nSome **bold** text", output="out.docx")

DOCX to Markdown:

    >>> from docxmd import docx_to_markdown, save_images
    >>> result = docx_to_markdown("out.docx")
    >>> print(result.markdown)
    >>> save_images(result.images, "images")

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "docxmd requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from docxmd.api import (  # noqa: E402
    MarkdownResult,
    docx_to_markdown,
    html_to_docx,
    load_image_table,
    markdown_files_to_docx,
    markdown_to_docx,
    markdown_to_html,
    save_images,
)
from docxmd.exceptions import (  # noqa: E402
    DependencyError,
    DocxMdError,
    FileError,
    MalformedFileError,
    ParsingError,
    RenderingError,
    UnsupportedImageFormatError,
    ValidationError,
)
from docxmd.options import DocxToMarkdownOptions, HtmlToDocxOptions, MarkdownOptions  # noqa: E402

__all__ = [
    "__version__",
    "markdown_to_html",
    "html_to_docx",
    "markdown_to_docx",
    "markdown_files_to_docx",
    "docx_to_markdown",
    "save_images",
    "load_image_table",
    "MarkdownResult",
    "HtmlToDocxOptions",
    "DocxToMarkdownOptions",
    "MarkdownOptions",
    "DocxMdError",
    "ValidationError",
    "FileError",
    "MalformedFileError",
    "ParsingError",
    "RenderingError",
    "UnsupportedImageFormatError",
    "DependencyError",
]
