#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/tokenizer.py
"""Flatten an HTML fragment into a stream of tag and text events.

BeautifulSoup parses the fragment; the tree is then walked in document order
and re-emitted as opening tags, closing tags and text, the way a streaming
tag reader would see them. Each opening tag knows the name of the tag that
follows it (so ``<li>`` can tell a task-list checkbox comes next) and the
name of its parent element.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterator, Union

from docxmd.html2docx.units import HtmlAttributes, StyleDeclarations

if TYPE_CHECKING:
    from bs4 import Tag

logger = logging.getLogger(__name__)

# Elements whose content never reaches the document
SKIPPED_ELEMENTS = frozenset({"script", "style", "head", "title", "template", "noscript", "xml"})


@dataclass(frozen=True)
class TagEvent:
    """One opening or closing tag.

    Attributes
    ----------
    name : str
        Lower-cased tag name (``"p"``, ``"td"``...)
    attributes : HtmlAttributes
        Element attributes; empty on closing tags
    styles : StyleDeclarations
        Parsed inline ``style`` declarations; empty on closing tags
    is_closing : bool
        True for ``</name>``
    self_closing : bool
        True for void elements (``<br>``, ``<img>``...), which get no closing event
    next_tag : str or None
        Name of the next tag in the stream, prefixed with ``/`` when it is a closing tag
    parent : str or None
        Name of the enclosing element

    """

    name: str
    attributes: HtmlAttributes = field(default_factory=HtmlAttributes)
    styles: StyleDeclarations = field(default_factory=StyleDeclarations)
    is_closing: bool = False
    self_closing: bool = False
    next_tag: str | None = None
    parent: str | None = None

    @property
    def key(self) -> str:
        """Dispatch key: ``"p"`` for an opening tag, ``"/p"`` for its closing tag."""
        return f"/{self.name}" if self.is_closing else self.name


@dataclass(frozen=True)
class TextEvent:
    """Character data between tags, exactly as it appeared in the source."""

    text: str


HtmlEvent = Union[TagEvent, TextEvent]


def tokenize(html: str, parser: str = "html.parser") -> list[HtmlEvent]:
    """Parse ``html`` and return its events in document order.

    Parameters
    ----------
    html : str
        HTML fragment or full document
    parser : str, default "html.parser"
        BeautifulSoup parser backend

    Returns
    -------
    list of TagEvent or TextEvent
        The flattened stream; every non-void opening tag has a matching
        closing event.

    """
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(html, parser)
    events: list[HtmlEvent] = []
    _walk(soup, None, events)
    return _link_next_tags(events)


def _walk(node: "Tag", parent_name: str | None, events: list[HtmlEvent]) -> None:
    from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

    for child in node.children:
        if isinstance(child, (Comment, Declaration, Doctype, ProcessingInstruction)):
            continue
        if isinstance(child, NavigableString):
            events.append(TextEvent(str(child)))
            continue
        if not isinstance(child, Tag):
            continue

        name = child.name.lower()
        if name in SKIPPED_ELEMENTS:
            logger.debug(f"Skipping <{name}> element")
            continue

        attrs = {
            key.lower(): " ".join(value) if isinstance(value, list) else str(value) for key, value in child.attrs.items()
        }
        self_closing = child.is_empty_element
        events.append(
            TagEvent(
                name=name,
                attributes=HtmlAttributes(attrs),
                styles=StyleDeclarations.parse(attrs.get("style")),
                self_closing=self_closing,
                parent=parent_name,
            )
        )
        if not self_closing:
            _walk(child, name, events)
            events.append(TagEvent(name=name, is_closing=True, parent=parent_name))


def _link_next_tags(events: list[HtmlEvent]) -> list[HtmlEvent]:
    """Fill ``next_tag`` with a backward pass over the stream."""
    next_tag: str | None = None
    for index in range(len(events) - 1, -1, -1):
        event = events[index]
        if isinstance(event, TagEvent):
            events[index] = replace(event, next_tag=next_tag)
            next_tag = event.key
    return events


class EventStream:
    """Cursor over the event list shared by every handler of one conversion.

    Handlers that need the content of their element (a heading, a list item,
    a link) keep pulling events from the same stream until the matching
    closing tag, so nested elements are dispatched in order.
    """

    def __init__(self, events: list[HtmlEvent]):
        self._events = events
        self._index = -1

    def __iter__(self) -> Iterator[HtmlEvent]:
        return self

    def __next__(self) -> HtmlEvent:
        if self._index + 1 >= len(self._events):
            raise StopIteration
        self._index += 1
        return self._events[self._index]

    @property
    def current(self) -> HtmlEvent | None:
        if 0 <= self._index < len(self._events):
            return self._events[self._index]
        return None
