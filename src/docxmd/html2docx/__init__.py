#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/__init__.py
"""HTML to DOCX conversion.

``HtmlToDocxConverter`` walks the tag stream of an HTML fragment and builds
WordprocessingML paragraphs, runs and tables in a python-docx document.
"""

from docxmd.html2docx.dispatcher import HtmlToDocxConverter

__all__ = ["HtmlToDocxConverter"]
