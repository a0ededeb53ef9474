#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/markdown.py
"""Markdown to HTML, the first stage of the Markdown to DOCX direction.

The HTML produced here is what the tag dispatcher in ``docxmd.html2docx``
consumes: mistune's HTML renderer, with task lists rendered as a leading
``<input type="checkbox">`` inside ``<li>``.

"""

from __future__ import annotations

import logging

from docxmd.constants import DEPS_MARKDOWN
from docxmd.exceptions import ParsingError
from docxmd.options.markdown import MarkdownOptions
from docxmd.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)


class MarkdownToHtmlConverter:
    """Render Markdown to HTML with mistune.

    Parameters
    ----------
    options : MarkdownOptions or None
        Enabled mistune plugins and raw HTML escaping

    """

    def __init__(self, options: MarkdownOptions | None = None):
        self.options = options or MarkdownOptions()

    @requires_dependencies("markdown2html", DEPS_MARKDOWN)
    def convert(self, markdown: str) -> str:
        """Render ``markdown`` to an HTML fragment.

        Raises
        ------
        ParsingError
            If mistune fails on the input

        """
        import mistune

        renderer = mistune.create_markdown(escape=self.options.escape_html, plugins=list(self.options.plugins))
        try:
            html = renderer(markdown)
        except Exception as e:
            raise ParsingError(
                f"Failed to render Markdown: {e}", parsing_stage="markdown", original_error=e
            ) from e

        logger.debug(f"Rendered {len(markdown)} characters of Markdown to {len(html)} characters of HTML")
        return html
