#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/utils/escape.py
"""Markdown escaping for text pulled out of Word documents.

Literal characters that Markdown would read as syntax are backslash-escaped
so that reconstructed documents keep their text intact.

"""

from __future__ import annotations

import re

# "![" must be handled before "[" so the bang is escaped as part of the pair
_INLINE_SPECIALS = re.compile(r"!\[|[#>\[*]")
_LINE_START_DASH = re.compile(r"(^|\n)-")


def escape_markdown_text(text: str, at_line_start: bool = True) -> tuple[str, bool]:
    r"""Escape Markdown metacharacters in a piece of plain text.

    ``#``, ``>``, ``[`` and ``*`` are escaped wherever they occur, ``![`` is
    escaped as ``\!\[`` and ``-`` only where it would start a list item.

    Parameters
    ----------
    text : str
        Text to escape
    at_line_start : bool, default True
        Whether ``text`` begins a line of the output

    Returns
    -------
    tuple[str, bool]
        The escaped text and whether any escape was applied

    Examples
    --------
        >>> escape_markdown_text("Item #3")
        ('Item \\#3', True)
        >>> escape_markdown_text("well-known")
        ('well-known', False)
        >>> escape_markdown_text("- not a list")
        ('\\- not a list', True)

    """
    if not text:
        return text, False

    escaped = _INLINE_SPECIALS.sub(lambda m: "\\!\\[" if m.group(0) == "![" else "\\" + m.group(0), text)

    if at_line_start:
        escaped = _LINE_START_DASH.sub(lambda m: m.group(1) + "\\-", escaped)
    else:
        escaped = re.sub(r"\n-", "\n\\-", escaped)

    return escaped, escaped != text


def escape_table_cell(text: str) -> str:
    r"""Escape pipes and flatten line breaks for a Markdown table cell.

    Examples
    --------
        >>> escape_table_cell("a | b")
        'a \\| b'

    """
    return text.replace("|", r"\|").replace("\n", " ")


def escape_link_text(text: str) -> str:
    r"""Escape square brackets inside link or image text.

    Examples
    --------
        >>> escape_link_text("see [1]")
        'see \\[1\\]'

    """
    return text.replace("[", r"\[").replace("]", r"\]")
