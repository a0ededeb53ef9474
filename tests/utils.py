"""Test utilities for the docxmd test suite.

This module provides helpers for building Word documents from raw
WordprocessingML, reopening converted packages and inspecting their body.
"""

import base64
import tempfile
from io import BytesIO
from pathlib import Path

import docx
from docx.oxml import parse_xml
from docx.oxml.ns import qn

# Base64 encoded 1x1 pixel PNG for testing
MINIMAL_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/w8AAn8B9FpQHLwAAAAASUVORK5CYII="
MINIMAL_PNG_BYTES = base64.b64decode(MINIMAL_PNG_B64)

MINIMAL_SVG = b'<svg xmlns="http://www.w3.org/2000/svg" width="40" height="20"><rect width="40" height="20"/></svg>'

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
W14_NS = "http://schemas.microsoft.com/office/word/2010/wordml"

_BODY_OPEN = f'<w:body xmlns:w="{W_NS}" xmlns:r="{R_NS}" xmlns:w14="{W14_NS}">'


def document_from_body_xml(body_xml: str):
    """Create a document whose body holds the given ``w:`` elements.

    The elements are written without namespace declarations, e.g.
    ``<w:p><w:r><w:t>Hello</w:t></w:r></w:p>``; the section properties of
    the default template are kept last.
    """
    document = docx.Document()
    body = document.element.body
    for child in list(body):
        if child.tag != qn("w:sectPr"):
            body.remove(child)
    return append_body_xml(document, body_xml)


def append_body_xml(document, body_xml: str):
    """Append ``w:`` elements to the body of ``document``, ahead of its section properties."""
    body = document.element.body
    section = body.find(qn("w:sectPr"))
    fragment = parse_xml(_BODY_OPEN + body_xml + "</w:body>")
    for child in list(fragment):
        if section is not None:
            section.addprevious(child)
        else:
            body.append(child)
    return document


def paragraph_xml(text: str, properties: str = "", run_properties: str = "") -> str:
    """Markup of a single-run paragraph."""
    ppr = f"<w:pPr>{properties}</w:pPr>" if properties else ""
    rpr = f"<w:rPr>{run_properties}</w:rPr>" if run_properties else ""
    return f'<w:p>{ppr}<w:r>{rpr}<w:t xml:space="preserve">{text}</w:t></w:r></w:p>'


def reopen(data: bytes):
    """Open a .docx package held in memory."""
    return docx.Document(BytesIO(data))


def body_blocks(document, name: str = None) -> list:
    """Direct children of the body, optionally only those with local name ``name``."""
    blocks = [child for child in document.element.body if not child.tag.endswith("}sectPr")]
    if name is None:
        return blocks
    return [block for block in blocks if block.tag == qn(f"w:{name}")]


def non_empty_paragraphs(document) -> list:
    """Body paragraphs that hold text."""
    return [p for p in document.paragraphs if p.text.strip()]


def style_id_of(paragraph_element) -> str:
    """``w:pStyle`` value of a paragraph element, or an empty string."""
    style = paragraph_element.find(f"{qn('w:pPr')}/{qn('w:pStyle')}")
    return style.get(qn("w:val")) if style is not None else ""


def num_id_of(paragraph_element) -> str:
    """``w:numId`` value of a paragraph element, or an empty string."""
    num_id = paragraph_element.find(f"{qn('w:pPr')}/{qn('w:numPr')}/{qn('w:numId')}")
    return num_id.get(qn("w:val")) if num_id is not None else ""


def create_test_temp_dir() -> Path:
    """Create a temporary directory for test files."""
    return Path(tempfile.mkdtemp())


def cleanup_test_dir(temp_dir: Path) -> None:
    """Clean up test directory and files."""
    import shutil
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
