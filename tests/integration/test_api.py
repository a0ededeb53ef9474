#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/integration/test_api.py
"""Integration tests for the public conversion functions.

Tests cover:
- Output targets (return value, path, stream)
- Templates and their failure modes
- Batch conversion of Markdown records
- Accepted sources of docx_to_markdown
- Saving extracted images
- Error wrapping

"""

from io import BytesIO

import docx
import pytest
from docx.enum.style import WD_STYLE_TYPE
from utils import MINIMAL_PNG_BYTES, reopen

from docxmd.api import (
    docx_to_markdown,
    html_to_docx,
    markdown_files_to_docx,
    markdown_to_docx,
    markdown_to_html,
    save_images,
)
from docxmd.exceptions import DocxMdError, FileError, MalformedFileError, RenderingError, ValidationError
from docxmd.options import HtmlToDocxOptions


@pytest.mark.integration
class TestHtmlToDocx:
    """Tests for html_to_docx and markdown_to_docx."""

    def test_returns_package_bytes(self):
        data = html_to_docx("<h1>Title</h1><p>Body</p>")
        assert data[:2] == b"PK"
        document = reopen(data)
        assert [p.text for p in document.paragraphs] == ["Title", "Body"]

    def test_writes_path(self, tmp_path):
        target = tmp_path / "out.docx"
        data = html_to_docx("<p>Body</p>", output=target)
        assert target.read_bytes() == data

    def test_writes_string_path(self, tmp_path):
        target = tmp_path / "out.docx"
        html_to_docx("<p>Body</p>", output=str(target))
        assert target.exists()

    def test_writes_stream(self):
        stream = BytesIO()
        data = html_to_docx("<p>Body</p>", output=stream)
        assert stream.getvalue() == data

    def test_template_styles_reused(self, tmp_path):
        template = docx.Document()
        template.styles.add_style("Corporate", WD_STYLE_TYPE.PARAGRAPH)
        template.add_paragraph("Cover page")
        template_path = tmp_path / "template.docx"
        template.save(template_path)

        data = html_to_docx("<p>Body</p>", options=HtmlToDocxOptions(template_path=str(template_path)))
        document = reopen(data)
        assert "Corporate" in {style.name for style in document.styles}
        assert [p.text for p in document.paragraphs] == ["Cover page", "Body"]

    def test_missing_template(self, tmp_path):
        options = HtmlToDocxOptions(template_path=str(tmp_path / "absent.docx"))
        with pytest.raises(FileError):
            html_to_docx("<p>Body</p>", options=options)

    def test_malformed_template(self, tmp_path):
        template_path = tmp_path / "template.docx"
        template_path.write_bytes(b"not a zip file")
        with pytest.raises(MalformedFileError) as exc_info:
            html_to_docx("<p>Body</p>", options=HtmlToDocxOptions(template_path=str(template_path)))
        assert exc_info.value.file_path == str(template_path)

    def test_unexpected_failure_wrapped(self, monkeypatch):
        def broken(self, html, document=None):
            raise KeyError("boom")

        monkeypatch.setattr("docxmd.api.HtmlToDocxConverter.convert", broken)
        with pytest.raises(RenderingError) as exc_info:
            html_to_docx("<p>Body</p>")
        assert exc_info.value.rendering_stage == "html2docx"
        assert isinstance(exc_info.value.original_error, KeyError)

    def test_image_table_from_json_file(self, tmp_path):
        table = tmp_path / "images.json"
        table.write_text(f'{{"images/logo.png": "{MINIMAL_PNG_BYTES.hex()}"}}', encoding="utf-8")
        document = reopen(markdown_to_docx("![Logo](logo.png)", images=table))
        assert [part.blob for part in document.part.package.image_parts] == [MINIMAL_PNG_BYTES]

    def test_markdown_to_html(self):
        assert markdown_to_html("*x*").strip() == "<p><em>x</em></p>"


@pytest.mark.integration
class TestBatchConversion:
    """Tests for markdown_files_to_docx."""

    def test_results_keyed_by_src(self, png_table):
        files = [
            {"src": "a.md", "file": "# A\n\n![Logo](logo.png)"},
            {"src": "b.md", "file": "# B"},
        ]
        results = markdown_files_to_docx(files, images=png_table)
        assert list(results) == ["a.md", "b.md"]
        assert reopen(results["b.md"]).paragraphs[0].text == "B"
        assert len(reopen(results["a.md"]).part.package.image_parts) == 1

    def test_record_without_file(self):
        with pytest.raises(ValidationError) as exc_info:
            markdown_files_to_docx([{"src": "a.md"}])
        assert exc_info.value.parameter_name == "files"

    def test_empty_batch(self):
        assert markdown_files_to_docx([]) == {}


@pytest.mark.integration
class TestDocxToMarkdownSources:
    """Tests for the sources accepted by docx_to_markdown."""

    @pytest.fixture
    def data(self):
        return markdown_to_docx("# Title\n\nBody")

    def test_bytes(self, data):
        assert docx_to_markdown(data).markdown == "# Title\n\nBody\n"

    def test_stream(self, data):
        assert docx_to_markdown(BytesIO(data)).markdown == "# Title\n\nBody\n"

    def test_path(self, data, tmp_path):
        path = tmp_path / "in.docx"
        path.write_bytes(data)
        assert docx_to_markdown(path).markdown == "# Title\n\nBody\n"
        assert docx_to_markdown(str(path)).markdown == "# Title\n\nBody\n"

    def test_document(self, data):
        document = reopen(data)
        assert docx_to_markdown(document).markdown == "# Title\n\nBody\n"

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileError) as exc_info:
            docx_to_markdown(tmp_path / "absent.docx")
        assert exc_info.value.file_path.endswith("absent.docx")

    def test_malformed_bytes(self):
        with pytest.raises(MalformedFileError) as exc_info:
            docx_to_markdown(b"not a docx")
        assert exc_info.value.file_path is None
        assert isinstance(exc_info.value, DocxMdError)


@pytest.mark.integration
class TestSaveImages:
    """Tests for save_images."""

    def test_writes_files(self, tmp_path):
        written = save_images({"image1.png": MINIMAL_PNG_BYTES}, tmp_path / "nested" / "images")
        assert written == [tmp_path / "nested" / "images" / "image1.png"]
        assert written[0].read_bytes() == MINIMAL_PNG_BYTES

    def test_names_reduced_to_basename(self, tmp_path):
        written = save_images({"../escape.png": b"data"}, tmp_path)
        assert written == [tmp_path / "escape.png"]

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(FileError):
            save_images({"image1.png": b"data"}, blocker)
