#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for the docxmd conversion stages.

Each stage has its own frozen options dataclass; use ``create_updated`` to
derive a modified copy.
"""

from __future__ import annotations

from docxmd.options.base import BaseConverterOptions, CloneFrozenMixin
from docxmd.options.docx import DocxToMarkdownOptions, HtmlToDocxOptions
from docxmd.options.markdown import MarkdownOptions

__all__ = [
    "BaseConverterOptions",
    "CloneFrozenMixin",
    "DocxToMarkdownOptions",
    "HtmlToDocxOptions",
    "MarkdownOptions",
]
