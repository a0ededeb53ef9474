#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/docx2markdown/__init__.py
"""DOCX to Markdown reconstruction."""

from docxmd.docx2markdown.walker import DocxToMarkdownWalker, MarkdownResult

__all__ = ["DocxToMarkdownWalker", "MarkdownResult"]
