#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_html_tables.py
"""Unit tests for HTML tables converted to WordprocessingML tables.

Tests cover:
- Rows, cells, header cells and the table grid
- Row spans producing uniform cell counts
- Column spans, widths, borders and cell shading
- Captions above or below the table
- Dropping tables without rows

"""

import pytest
from docx.oxml.ns import qn
from utils import body_blocks

from docxmd.html2docx import HtmlToDocxConverter
from docxmd.html2docx.oxml import element_text, find_property
from docxmd.options import HtmlToDocxOptions


def _convert(html: str, **options):
    return HtmlToDocxConverter(HtmlToDocxOptions(**options)).convert(html)


def _table(document):
    return body_blocks(document, "tbl")[0]


def _rows(table) -> list:
    return table.findall(qn("w:tr"))


def _cells(row) -> list:
    return row.findall(qn("w:tc"))


def _cell_texts(table) -> list:
    return [[element_text(cell) for cell in _cells(row)] for row in _rows(table)]


@pytest.mark.unit
@pytest.mark.docx
class TestTableStructure:
    """Tests for the basic table layout."""

    def test_simple_table(self):
        document = _convert("<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>2</td></tr></table>")
        table = _table(document)
        assert _cell_texts(table) == [["A", "B"], ["1", "2"]]
        assert len(table.find(qn("w:tblGrid")).findall(qn("w:gridCol"))) == 2

    def test_table_style(self):
        document = _convert("<table><tr><td>x</td></tr></table>")
        style = find_property(_table(document), "tblStyle")
        assert style.get(qn("w:val")) == "TableGrid"

    def test_header_cells_bold(self):
        document = _convert("<table><tr><th>A</th></tr><tr><td>1</td></tr></table>")
        header, body = _rows(_table(document))
        assert header.find(f".//{qn('w:rPr')}/{qn('w:b')}") is not None
        assert body.find(f".//{qn('w:rPr')}/{qn('w:b')}") is None

    def test_cells_centered_vertically(self):
        document = _convert("<table><tr><td>x</td></tr></table>")
        cell = _cells(_rows(_table(document))[0])[0]
        assert find_property(cell, "vAlign").get(qn("w:val")) == "center"

    def test_every_cell_has_a_paragraph(self):
        document = _convert("<table><tr><td></td><td>x</td></tr></table>")
        for cell in _cells(_rows(_table(document))[0]):
            assert cell.find(qn("w:p")) is not None

    def test_thead_and_tbody(self):
        document = _convert(
            "<table><thead><tr><th>H</th></tr></thead><tbody><tr><td>1</td></tr><tr><td>2</td></tr></tbody></table>"
        )
        assert _cell_texts(_table(document)) == [["H"], ["1"], ["2"]]

    def test_surrounding_paragraphs(self):
        document = _convert("<p>before</p><table><tr><td>x</td></tr></table><p>after</p>")
        blocks = [block for block in body_blocks(document) if element_text(block)]
        assert [block.tag.rsplit("}", 1)[-1] for block in blocks] == ["p", "tbl", "p"]

    def test_empty_table_dropped(self):
        document = _convert("<p>a</p><table></table><p>b</p>")
        assert body_blocks(document, "tbl") == []

    def test_rows_without_cells_dropped(self):
        document = _convert("<table><tr></tr><tr><td>x</td></tr></table>")
        assert _cell_texts(_table(document)) == [["x"]]

    def test_nested_table(self):
        document = _convert("<table><tr><td><table><tr><td>inner</td></tr></table></td></tr></table>")
        outer = _table(document)
        outer_cell = _cells(_rows(outer)[0])[0]
        inner = outer_cell.find(qn("w:tbl"))
        assert inner is not None
        assert _cell_texts(inner) == [["inner"]]
        # a cell must end with a paragraph
        assert outer_cell[-1].tag == qn("w:p")

    def test_text_after_nested_table_stays_in_outer_cell(self):
        document = _convert(
            "<table><tr><td><table><tr><td>in</td></tr></table>after<p>para</p></td></tr></table>"
        )
        outer_cell = _cells(_rows(_table(document))[0])[0]
        inner = outer_cell.find(qn("w:tbl"))
        assert _cell_texts(inner) == [["in"]]
        texts = [element_text(p) for p in outer_cell.findall(qn("w:p")) if element_text(p)]
        assert texts == ["after", "para"]


@pytest.mark.unit
@pytest.mark.docx
class TestSpans:
    """Tests for row and column spans."""

    def test_row_span_first_column(self):
        document = _convert(
            '<table><tr><td rowspan="2">A</td><td>B</td></tr><tr><td>C</td></tr></table>'
        )
        rows = _rows(_table(document))
        assert [len(_cells(row)) for row in rows] == [2, 2]
        origin = find_property(_cells(rows[0])[0], "vMerge")
        continuation = find_property(_cells(rows[1])[0], "vMerge")
        assert origin.get(qn("w:val")) == "restart"
        assert continuation is not None and continuation.get(qn("w:val")) is None
        assert element_text(_cells(rows[1])[1]) == "C"

    def test_row_span_middle_column(self):
        document = _convert(
            '<table><tr><td>1</td><td rowspan="2">2</td><td>3</td></tr><tr><td>4</td><td>6</td></tr></table>'
        )
        second = _rows(_table(document))[1]
        assert [element_text(cell) for cell in _cells(second)] == ["4", "", "6"]
        assert find_property(_cells(second)[1], "vMerge") is not None

    def test_row_span_three_rows(self):
        document = _convert(
            '<table><tr><td rowspan="3">A</td><td>1</td></tr><tr><td>2</td></tr><tr><td>3</td></tr></table>'
        )
        assert [len(_cells(row)) for row in _rows(_table(document))] == [2, 2, 2]

    def test_two_row_spans_in_one_row(self):
        document = _convert(
            '<table><tr><td rowspan="2">A</td><td>B</td><td rowspan="2">C</td></tr>'
            "<tr><td>D</td></tr></table>"
        )
        second = _rows(_table(document))[1]
        assert [element_text(cell) for cell in _cells(second)] == ["", "D", ""]

    def test_row_covered_by_spans(self):
        document = _convert(
            '<table><tr><td rowspan="2">a</td><td rowspan="2">b</td></tr><tr></tr>'
            "<tr><td>c</td><td>d</td></tr></table>"
        )
        rows = _rows(_table(document))
        assert [len(_cells(row)) for row in rows] == [2, 2, 2]
        assert all(find_property(cell, "vMerge") is not None for cell in _cells(rows[1]))
        assert [element_text(cell) for cell in _cells(rows[2])] == ["c", "d"]

    def test_column_span(self):
        document = _convert('<table><tr><td colspan="2">wide</td></tr><tr><td>a</td><td>b</td></tr></table>')
        table = _table(document)
        span = find_property(_cells(_rows(table)[0])[0], "gridSpan")
        assert span.get(qn("w:val")) == "2"
        assert len(table.find(qn("w:tblGrid")).findall(qn("w:gridCol"))) == 2

    def test_row_and_column_span(self):
        document = _convert(
            '<table><tr><td rowspan="2" colspan="2">A</td><td>B</td></tr><tr><td>C</td></tr></table>'
        )
        continuation = _cells(_rows(_table(document))[1])[0]
        assert find_property(continuation, "gridSpan").get(qn("w:val")) == "2"
        assert find_property(continuation, "vMerge") is not None


@pytest.mark.unit
@pytest.mark.docx
class TestTableProperties:
    """Tests for widths, borders and shading."""

    def test_percent_width(self):
        document = _convert('<table style="width: 100%"><tr><td>x</td></tr></table>')
        width = find_property(_table(document), "tblW")
        assert width.get(qn("w:type")) == "pct"
        assert width.get(qn("w:w")) == "5000"

    def test_auto_width(self):
        document = _convert("<table><tr><td>x</td></tr></table>")
        assert find_property(_table(document), "tblW").get(qn("w:type")) == "auto"

    def test_border_zero_removes_borders(self):
        document = _convert('<table border="0"><tr><td>x</td></tr></table>')
        borders = find_property(_table(document), "tblBorders")
        values = {side.tag.rsplit("}", 1)[-1]: side.get(qn("w:val")) for side in borders}
        assert values == {side: "none" for side in ("top", "left", "bottom", "right", "insideH", "insideV")}

    def test_border_zero_overrides_class_style(self):
        document = _convert('<table border="0" class="LightGrid-Accent1"><tr><td>x</td></tr></table>')
        table = _table(document)
        assert find_property(table, "tblStyle").get(qn("w:val")) == "LightGrid-Accent1"
        borders = find_property(table, "tblBorders")
        values = {side.tag.rsplit("}", 1)[-1]: side.get(qn("w:val")) for side in borders}
        assert values == {side: "none" for side in ("top", "left", "bottom", "right", "insideH", "insideV")}

    def test_default_style_keeps_its_borders(self):
        document = _convert('<table border="1"><tr><td>x</td></tr></table>')
        assert find_property(_table(document), "tblBorders") is None

    def test_centered_table(self):
        document = _convert('<table align="center"><tr><td>x</td></tr></table>')
        assert find_property(_table(document), "jc").get(qn("w:val")) == "center"

    def test_cell_background(self):
        document = _convert('<table><tr><td style="background-color: #ff0000">x</td></tr></table>')
        cell = _cells(_rows(_table(document))[0])[0]
        assert find_property(cell, "shd").get(qn("w:fill")) == "FF0000"

    def test_cell_alignment(self):
        document = _convert('<table><tr><td style="text-align: center">x</td></tr></table>')
        paragraph = _cells(_rows(_table(document))[0])[0].find(qn("w:p"))
        assert find_property(paragraph, "jc").get(qn("w:val")) == "center"


@pytest.mark.unit
@pytest.mark.docx
class TestCaptions:
    """Tests for table captions."""

    HTML = "<table><caption>Results</caption><tr><td>x</td></tr></table>"

    def _caption_and_table(self, document):
        return [block for block in body_blocks(document) if element_text(block)]

    def test_caption_above(self):
        caption, table = self._caption_and_table(_convert(self.HTML))
        assert table.tag == qn("w:tbl")
        assert element_text(caption) == "Table 1 Results"
        assert find_property(caption, "pStyle").get(qn("w:val")) == "Caption"

    def test_caption_below(self):
        table, caption = self._caption_and_table(_convert(self.HTML, table_caption_position="below"))
        assert table.tag == qn("w:tbl")
        assert element_text(caption) == "Table 1 Results"

    def test_caption_sequence_field(self):
        caption, _ = self._caption_and_table(_convert(self.HTML))
        instruction = caption.find(f".//{qn('w:instrText')}")
        assert "SEQ TABLE" in instruction.text
        kinds = [node.get(qn("w:fldCharType")) for node in caption.iter(qn("w:fldChar"))]
        assert kinds == ["begin", "separate", "end"]

    def test_captions_numbered(self):
        document = _convert(self.HTML + self.HTML)
        captions = [block for block in body_blocks(document, "p") if element_text(block)]
        assert [element_text(p) for p in captions] == ["Table 1 Results", "Table 2 Results"]

    def test_caption_follows_table_alignment(self):
        document = _convert('<table align="center"><caption>C</caption><tr><td>x</td></tr></table>')
        caption = [block for block in body_blocks(document, "p") if element_text(block)][0]
        assert find_property(caption, "jc").get(qn("w:val")) == "center"
