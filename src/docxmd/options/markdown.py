#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for the Markdown to HTML stage."""

from dataclasses import dataclass, field

from docxmd.options.base import CloneFrozenMixin

KNOWN_MISTUNE_PLUGINS = frozenset(
    {
        "strikethrough",
        "table",
        "task_lists",
        "url",
        "footnotes",
        "def_list",
        "abbr",
        "mark",
        "insert",
        "superscript",
        "subscript",
    }
)


# src/docxmd/options/markdown.py
@dataclass(frozen=True)
class MarkdownOptions(CloneFrozenMixin):
    """Configuration options for converting Markdown to the HTML intermediate form.

    Parameters
    ----------
    plugins : tuple of str, default ("strikethrough", "table", "task_lists", "url")
        mistune plugins enabled on the parser.
    escape_html : bool, default False
        Escape raw HTML embedded in the Markdown instead of passing it through.

    """

    plugins: tuple[str, ...] = field(
        default=("strikethrough", "table", "task_lists", "url"),
        metadata={"help": "mistune plugins to enable", "importance": "advanced"},
    )
    escape_html: bool = field(
        default=False,
        metadata={"help": "Escape raw HTML found in the Markdown source", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate plugin names.

        Raises
        ------
        ValueError
            If an unknown plugin name is given.

        """
        unknown = [name for name in self.plugins if name not in KNOWN_MISTUNE_PLUGINS]
        if unknown:
            raise ValueError(f"Unknown mistune plugins: {', '.join(unknown)}")
