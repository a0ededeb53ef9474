#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/notes.py
"""Footnotes and endnotes.

python-docx has no notes API, so the notes parts are created (or, when the
template already carries one, parsed and rewritten) here. Each part starts
with the separator and continuation separator notes Word expects; user notes
are numbered from 1.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docxmd.constants import (
    ENDNOTE_REFERENCE_STYLE,
    ENDNOTE_TEXT_STYLE,
    FOOTNOTE_REFERENCE_STYLE,
    FOOTNOTE_TEXT_STYLE,
    RELATIONSHIPS_NS,
    WORDPROCESSING_NS,
)
from docxmd.html2docx.oxml import make_element, new_paragraph, new_run
from docxmd.html2docx.styles import StyleRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoteKind:
    """Names that differ between footnotes and endnotes."""

    name: str
    partname: str
    reference_style: str
    text_style: str

    @property
    def root_tag(self) -> str:
        return f"{self.name}s"

    @property
    def reference_tag(self) -> str:
        return f"{self.name}Reference"

    @property
    def mark_tag(self) -> str:
        return f"{self.name}Ref"


FOOTNOTE = NoteKind("footnote", "/word/footnotes.xml", FOOTNOTE_REFERENCE_STYLE, FOOTNOTE_TEXT_STYLE)
ENDNOTE = NoteKind("endnote", "/word/endnotes.xml", ENDNOTE_REFERENCE_STYLE, ENDNOTE_TEXT_STYLE)

_NOTE_KINDS = {"footnote": FOOTNOTE, "endnote": ENDNOTE}


class _NotesPart:
    """The notes root element plus how to store it back."""

    def __init__(self, part: Any, root: Any, generic: bool):
        self.part = part
        self.root = root
        self.generic = generic

    def next_id(self) -> int:
        from docx.oxml.ns import qn

        ids = [int(note.get(qn("w:id"), "0")) for note in self.root if note.get(qn("w:id")) is not None]
        return max([0, *ids]) + 1


class NotesCollection:
    """Add footnotes and endnotes to a document.

    Parameters
    ----------
    document : docx.document.Document
        Target document
    styles : StyleRegistry
        Used to resolve (or add) the note reference and text styles

    """

    def __init__(self, document: Any, styles: StyleRegistry):
        self._document = document
        self._styles = styles
        self._parts: dict[str, _NotesPart] = {}

    def add_note(self, kind: str, text: str) -> Any:
        """Create a note holding ``text`` and return the reference run for the body.

        Parameters
        ----------
        kind : {"footnote", "endnote"}
            Note type
        text : str
            Plain text of the note

        Returns
        -------
        lxml element
            ``w:r`` carrying the ``w:footnoteReference``/``w:endnoteReference``

        """
        note_kind = _NOTE_KINDS[kind]
        notes = self._get_or_add_part(note_kind)
        note_id = notes.next_id()

        reference_style = self._styles.get_style(note_kind.reference_style, "character") or note_kind.reference_style
        text_style = self._styles.get_style(note_kind.text_style, "paragraph") or note_kind.text_style

        paragraph = new_paragraph(
            [
                make_element("pPr", children=[make_element("pStyle", {"val": text_style})]),
                new_run(
                    properties=[make_element("rStyle", {"val": reference_style})],
                    children=[make_element(note_kind.mark_tag)],
                ),
                new_run(f" {text}"),
            ]
        )
        notes.root.append(make_element(note_kind.name, {"id": note_id}, [paragraph]))
        if notes.generic:
            self._write_back(notes)

        logger.debug(f"Added {kind} {note_id}")
        return new_run(
            properties=[make_element("rStyle", {"val": reference_style})],
            children=[make_element(note_kind.reference_tag, {"id": note_id})],
        )

    def _get_or_add_part(self, kind: NoteKind) -> _NotesPart:
        if kind.name in self._parts:
            return self._parts[kind.name]

        from docx.opc.constants import CONTENT_TYPE as CT
        from docx.opc.constants import RELATIONSHIP_TYPE as RT
        from docx.opc.packuri import PackURI
        from docx.opc.part import XmlPart
        from docx.oxml import parse_xml

        reltype = RT.FOOTNOTES if kind is FOOTNOTE else RT.ENDNOTES
        document_part = self._document.part

        for rel in document_part.rels.values():
            if rel.reltype == reltype and not rel.is_external:
                part = rel.target_part
                element = getattr(part, "_element", None)
                if element is not None:
                    notes = _NotesPart(part, element, generic=False)
                else:
                    notes = _NotesPart(part, parse_xml(part.blob), generic=True)
                logger.debug(f"Reusing existing {kind.root_tag} part {part.partname}")
                self._parts[kind.name] = notes
                return notes

        content_type = CT.WML_FOOTNOTES if kind is FOOTNOTE else CT.WML_ENDNOTES
        root = parse_xml(_empty_notes_xml(kind))
        part = XmlPart(PackURI(kind.partname), content_type, root, document_part.package)
        document_part.relate_to(part, reltype)
        notes = _NotesPart(part, root, generic=False)
        self._parts[kind.name] = notes
        return notes

    @staticmethod
    def _write_back(notes: _NotesPart) -> None:
        from docx.opc.oxml import serialize_part_xml

        notes.part._blob = serialize_part_xml(notes.root)


def _empty_notes_xml(kind: NoteKind) -> str:
    separators = []
    for note_id, note_type in ((-1, "separator"), (0, "continuationSeparator")):
        separators.append(
            f'<w:{kind.name} w:type="{note_type}" w:id="{note_id}">'
            '<w:p><w:pPr><w:spacing w:after="0" w:line="240" w:lineRule="auto"/></w:pPr>'
            f"<w:r><w:{note_type}/></w:r></w:p>"
            f"</w:{kind.name}>"
        )
    return (
        f'<w:{kind.root_tag} xmlns:w="{WORDPROCESSING_NS}" xmlns:r="{RELATIONSHIPS_NS}">'
        + "".join(separators)
        + f"</w:{kind.root_tag}>"
    )
