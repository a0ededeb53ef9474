"""The public conversion functions of docxmd."""

#  Copyright (c) 2025 Tom Villani, Ph.D.
# src/docxmd/api.py
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import IO, Any, Mapping, Sequence, Union

from docxmd.constants import DEPS_DOCX
from docxmd.docx2markdown import DocxToMarkdownWalker, MarkdownResult
from docxmd.exceptions import DocxMdError, FileError, MalformedFileError, RenderingError, ValidationError
from docxmd.html2docx import HtmlToDocxConverter
from docxmd.markdown import MarkdownToHtmlConverter
from docxmd.options.docx import DocxToMarkdownOptions, HtmlToDocxOptions
from docxmd.options.markdown import MarkdownOptions
from docxmd.utils.decorators import debug_timer, requires_dependencies
from docxmd.utils.images import load_image_table

logger = logging.getLogger(__name__)

OutputTarget = Union[str, Path, IO[bytes], None]
ImageTable = Union[Mapping[str, str], Sequence[Mapping[str, str]], str, Path, None]

__all__ = [
    "MarkdownResult",
    "docx_to_markdown",
    "html_to_docx",
    "load_image_table",
    "markdown_files_to_docx",
    "markdown_to_docx",
    "markdown_to_html",
    "save_images",
]


def markdown_to_html(markdown: str, options: MarkdownOptions | None = None) -> str:
    """Render Markdown to the HTML consumed by ``html_to_docx``.

    Parameters
    ----------
    markdown : str
        Markdown source
    options : MarkdownOptions, optional
        mistune plugins and raw HTML escaping

    Returns
    -------
    str
        HTML fragment

    Raises
    ------
    ParsingError
        If the Markdown cannot be rendered.

    """
    with debug_timer(logger, "Markdown to HTML"):
        return MarkdownToHtmlConverter(options).convert(markdown)


def html_to_docx(
    html: str,
    output: OutputTarget = None,
    images: ImageTable = None,
    options: HtmlToDocxOptions | None = None,
) -> bytes:
    """Build a Word document from HTML.

    Parameters
    ----------
    html : str
        HTML fragment or document
    output : str, Path, binary stream or None
        Where to save the document in addition to returning it
    images : mapping, list of records, JSON path or None
        Side-table of hex-encoded image payloads keyed by ``images/<src>``;
        see ``load_image_table`` for the accepted shapes
    options : HtmlToDocxOptions, optional
        Conversion options

    Returns
    -------
    bytes
        The .docx package

    Raises
    ------
    UnsupportedImageFormatError
        If an ``<img>`` references a file type that cannot be embedded.
    MalformedFileError
        If ``options.template_path`` cannot be opened as a .docx package.
    RenderingError
        If building or saving the document fails.

    Examples
    --------
        >>> data = html_to_docx("<h1>Title</h1><p>Body</p>", output="out.docx")

    """
    options = options or HtmlToDocxOptions()
    converter = HtmlToDocxConverter(options, load_image_table(images))
    template = _open_document(options.template_path) if options.template_path else None

    try:
        with debug_timer(logger, "HTML to DOCX"):
            document = converter.convert(html, document=template)
            buffer = BytesIO()
            document.save(buffer)
    except DocxMdError:
        raise
    except Exception as e:
        raise RenderingError(
            f"Failed to build DOCX document: {type(e).__name__}: {e}", rendering_stage="html2docx", original_error=e
        ) from e

    data = buffer.getvalue()
    _write_output(data, output)
    return data


def markdown_to_docx(
    markdown: str,
    output: OutputTarget = None,
    images: ImageTable = None,
    options: HtmlToDocxOptions | None = None,
    markdown_options: MarkdownOptions | None = None,
) -> bytes:
    """Convert Markdown to a Word document (``markdown_to_html`` then ``html_to_docx``).

    Examples
    --------
        >>> data = markdown_to_docx("# Title\\n\\n**bold** and *italic*")

    """
    html = markdown_to_html(markdown, markdown_options)
    return html_to_docx(html, output=output, images=images, options=options)


def markdown_files_to_docx(
    files: Sequence[Mapping[str, str]],
    images: ImageTable = None,
    options: HtmlToDocxOptions | None = None,
    markdown_options: MarkdownOptions | None = None,
) -> dict[str, bytes]:
    """Convert a batch of Markdown documents sharing one image side-table.

    Parameters
    ----------
    files : sequence of mapping
        Records ``{"src": <name>, "file": <markdown>}``
    images : mapping, list of records, JSON path or None
        Side-table shared by every document
    options : HtmlToDocxOptions, optional
        Conversion options applied to every document
    markdown_options : MarkdownOptions, optional
        Markdown rendering options

    Returns
    -------
    dict[str, bytes]
        .docx package per ``src``

    Raises
    ------
    ValidationError
        If a record lacks ``src`` or ``file``.

    """
    table = load_image_table(images)
    results: dict[str, bytes] = {}
    for record in files:
        if "src" not in record or "file" not in record:
            raise ValidationError(
                "Each file record needs 'src' and 'file' keys", parameter_name="files", parameter_value=record
            )
        logger.info(f"Converting {record['src']}")
        results[record["src"]] = markdown_to_docx(
            record["file"], images=table, options=options, markdown_options=markdown_options
        )
    return results


@requires_dependencies("docx2markdown", DEPS_DOCX)
def docx_to_markdown(
    source: Union[str, Path, IO[bytes], bytes, Any],
    options: DocxToMarkdownOptions | None = None,
) -> MarkdownResult:
    """Reconstruct Markdown from a Word document.

    Parameters
    ----------
    source : str, Path, binary stream, bytes or docx.document.Document
        The document to read
    options : DocxToMarkdownOptions, optional
        Image prefix, table divider scope, hyperlink pairing and code fence

    Returns
    -------
    MarkdownResult
        Markdown text and the extracted images keyed by file name

    Raises
    ------
    FileError
        If ``source`` is a path that does not exist.
    MalformedFileError
        If ``source`` cannot be opened as a .docx package.

    Examples
    --------
        >>> result = docx_to_markdown("report.docx")
        >>> save_images(result.images, "images")

    """
    import docx.document

    document = source if isinstance(source, docx.document.Document) else _open_document(source)
    with debug_timer(logger, "DOCX to Markdown"):
        return DocxToMarkdownWalker(options).walk(document)


def save_images(images: Mapping[str, bytes], directory: Union[str, Path]) -> list[Path]:
    """Write extracted images into ``directory`` (created when missing).

    Returns
    -------
    list[Path]
        Paths of the written files

    Raises
    ------
    FileError
        If the directory or a file cannot be written.

    """
    target = Path(directory)
    written = []
    try:
        target.mkdir(parents=True, exist_ok=True)
        for name, data in images.items():
            path = target / Path(name).name
            path.write_bytes(data)
            written.append(path)
    except OSError as e:
        raise FileError(f"Could not write images to {target}: {e}", file_path=str(target), original_error=e) from e

    logger.debug(f"Wrote {len(written)} image(s) to {target}")
    return written


def _open_document(source: Union[str, Path, IO[bytes], bytes]) -> Any:
    import docx

    if isinstance(source, (str, Path)) and not Path(source).is_file():
        raise FileError(f"File not found: {source}", file_path=str(source))

    try:
        if isinstance(source, bytes):
            return docx.Document(BytesIO(source))
        if isinstance(source, Path):
            return docx.Document(str(source))
        return docx.Document(source)
    except Exception as e:
        raise MalformedFileError(
            f"Failed to open DOCX document: {e}",
            file_path=str(source) if isinstance(source, (str, Path)) else None,
            original_error=e,
        ) from e


def _write_output(data: bytes, output: OutputTarget) -> None:
    if output is None:
        return
    if hasattr(output, "write"):
        output.write(data)
        return
    path = Path(output)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise FileError(f"Could not write {path}: {e}", file_path=str(path), original_error=e) from e
    logger.debug(f"Wrote {len(data)} bytes to {path}")
