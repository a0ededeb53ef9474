#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_html_dispatcher.py
"""Unit tests for the HTML to DOCX tag dispatcher.

Tests cover:
- Paragraphs, whitespace handling and line breaks
- Inline formatting tags and inline CSS
- Headings with and without manual numbering
- Block quotes, preformatted code and horizontal rules
- Hyperlinks (external, anchors, ignored schemes)
- Task-list checkboxes, quotations, divs, definition lists and figure captions

"""

import pytest
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from utils import W14_NS, body_blocks, non_empty_paragraphs, num_id_of, style_id_of

from docxmd.html2docx import HtmlToDocxConverter
from docxmd.html2docx.oxml import element_text, find_property
from docxmd.options import HtmlToDocxOptions


def _convert(html: str, **options):
    return HtmlToDocxConverter(HtmlToDocxOptions(**options)).convert(html)


def _texts(document) -> list:
    return [element_text(p) for p in body_blocks(document, "p") if element_text(p)]


def _rule_paragraph(document):
    for paragraph in body_blocks(document, "p"):
        borders = find_property(paragraph, "pBdr")
        if borders is not None and borders.find(qn("w:top")) is not None:
            return paragraph
    return None


def _run_properties(run_element) -> set:
    rpr = run_element.find(qn("w:rPr"))
    return {child.tag.rsplit("}", 1)[-1] for child in rpr} if rpr is not None else set()


@pytest.mark.unit
@pytest.mark.docx
class TestParagraphs:
    """Tests for plain paragraphs and text."""

    def test_paragraph_with_bold(self):
        document = _convert("<p>Hello <b>world</b></p>")
        paragraphs = non_empty_paragraphs(document)
        assert len(paragraphs) == 1
        assert paragraphs[0].text == "Hello world"
        assert paragraphs[0].runs[1].bold is True
        assert not paragraphs[0].runs[0].bold

    def test_paragraph_spacing(self):
        document = _convert("<p>one</p><p>two</p>")
        spacing = find_property(body_blocks(document, "p")[1], "spacing")
        assert spacing.get(qn("w:beforeLines")) == "250"

    def test_whitespace_between_blocks_dropped(self):
        document = _convert("<p>a</p>\n\n<p>b</p>\n")
        assert _texts(document) == ["a", "b"]
        for paragraph in non_empty_paragraphs(document):
            assert len(paragraph.runs) == 1

    def test_whitespace_collapsed(self):
        document = _convert("<p>a   lot\n of   space</p>")
        assert _texts(document) == ["a lot of space"]

    def test_inner_space_kept(self):
        document = _convert("<p><b>bold</b> <i>italic</i></p>")
        assert _texts(document) == ["bold italic"]

    def test_line_break(self):
        document = _convert("<p>a<br>b</p>")
        assert non_empty_paragraphs(document)[0].text == "a\nb"

    def test_text_outside_paragraphs(self):
        document = _convert("loose text")
        assert _texts(document) == ["loose text"]

    def test_empty_input_leaves_one_paragraph(self):
        document = _convert("")
        assert len(body_blocks(document, "p")) == 1

    def test_skipped_elements(self):
        document = _convert("<style>p {color: red}</style><script>x()</script><p>kept</p>")
        assert _texts(document) == ["kept"]

    def test_paragraph_alignment(self):
        document = _convert('<p style="text-align: right">x</p>')
        assert non_empty_paragraphs(document)[0].alignment == WD_ALIGN_PARAGRAPH.RIGHT

    def test_appends_to_given_document(self):
        import docx

        document = docx.Document()
        document.add_paragraph("existing")
        HtmlToDocxConverter().convert("<p>new</p>", document=document)
        assert _texts(document) == ["existing", "new"]


@pytest.mark.unit
@pytest.mark.docx
class TestInlineFormatting:
    """Tests for inline tags and CSS."""

    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("strong", "b"),
            ("em", "i"),
            ("u", "u"),
            ("del", "strike"),
            ("sub", "vertAlign"),
            ("sup", "vertAlign"),
            ("mark", "highlight"),
        ],
    )
    def test_inline_tags(self, tag, expected):
        document = _convert(f"<p><{tag}>x</{tag}></p>")
        run = body_blocks(document, "p")[0].find(qn("w:r"))
        assert expected in _run_properties(run)

    def test_nested_formatting(self):
        document = _convert("<p><b>bold <i>both</i></b></p>")
        runs = non_empty_paragraphs(document)[0].runs
        assert runs[1].bold and runs[1].italic
        assert runs[0].bold and not runs[0].italic

    def test_inline_css(self):
        document = _convert('<p><span style="color: red; font-size: 14pt; font-weight: bold">x</span></p>')
        run = body_blocks(document, "p")[0].find(qn("w:r"))
        rpr = run.find(qn("w:rPr"))
        assert rpr.find(qn("w:color")).get(qn("w:val")) == "FF0000"
        assert rpr.find(qn("w:sz")).get(qn("w:val")) == "28"
        assert rpr.find(qn("w:b")) is not None

    def test_inline_code_font(self):
        document = _convert("<p>call <code>run()</code></p>")
        run = non_empty_paragraphs(document)[0].runs[1]
        assert run.font.name == "Courier New"

    def test_inline_quote(self):
        document = _convert("<p>He said <q>hello</q></p>")
        assert _texts(document) == ["He said “hello”"]

    def test_formatting_ends_with_tag(self):
        document = _convert("<p><b>bold</b>plain</p>")
        runs = non_empty_paragraphs(document)[0].runs
        assert runs[0].bold and not runs[1].bold


@pytest.mark.unit
@pytest.mark.docx
class TestHeadings:
    """Tests for headings."""

    def test_heading_style(self):
        document = _convert("<h1>Title</h1><h3>Sub</h3>")
        paragraphs = non_empty_paragraphs(document)
        assert [p.style.name for p in paragraphs] == ["Heading 1", "Heading 3"]
        assert [p.text for p in paragraphs] == ["Title", "Sub"]

    def test_manual_numbering_becomes_native(self):
        document = _convert("<h2>1.1. Scope</h2>")
        heading = body_blocks(document, "p")[0]
        assert element_text(heading) == "Scope"
        assert num_id_of(heading)
        ilvl = heading.find(f"{qn('w:pPr')}/{qn('w:numPr')}/{qn('w:ilvl')}")
        assert ilvl.get(qn("w:val")) == "1"

    def test_numbered_headings_share_numbering(self):
        document = _convert("<h1>1. Intro</h1><h1>2. Body</h1>")
        first, second = body_blocks(document, "p")
        assert num_id_of(first) == num_id_of(second)

    def test_numbering_disabled(self):
        document = _convert("<h2>1.1. Scope</h2>", heading_numbering=False)
        heading = body_blocks(document, "p")[0]
        assert element_text(heading) == "1.1. Scope"
        assert num_id_of(heading) == ""

    def test_text_without_number_untouched(self):
        document = _convert("<h1>2024 review</h1>")
        heading = body_blocks(document, "p")[0]
        assert element_text(heading) == "2024 review"
        assert num_id_of(heading) == ""

    def test_heading_alignment(self):
        document = _convert('<h2 align="center">x</h2>')
        assert non_empty_paragraphs(document)[0].alignment == WD_ALIGN_PARAGRAPH.CENTER


@pytest.mark.unit
@pytest.mark.docx
class TestBlocks:
    """Tests for block quotes, code blocks and rules."""

    def test_blockquote(self):
        document = _convert("<blockquote>\n<p>Quoted</p>\n</blockquote>")
        paragraph = [p for p in body_blocks(document, "p") if element_text(p)][0]
        borders = find_property(paragraph, "pBdr")
        assert borders.find(qn("w:left")) is not None
        assert find_property(paragraph, "ind").get(qn("w:left")) == "500"

    def test_code_block(self):
        document = _convert("<pre><code>line1\n\tline2\n</code></pre>")
        paragraphs = non_empty_paragraphs(document)
        assert len(paragraphs) == 1
        assert paragraphs[0].text == "line1\n\tline2"
        element = paragraphs[0]._p
        assert find_property(element, "shd").get(qn("w:fill")) == "F8F8F8"
        assert find_property(element, "pBdr").find(qn("w:top")) is not None
        assert paragraphs[0].runs[0].font.name == "Courier New"

    def test_code_block_keeps_spaces(self):
        document = _convert("<pre><code>a    b</code></pre>")
        assert non_empty_paragraphs(document)[0].text == "a    b"

    def test_horizontal_rule(self):
        document = _convert("<p>a</p><hr/><p>b</p>")
        paragraphs = body_blocks(document, "p")
        assert len(paragraphs) == 3
        top = find_property(paragraphs[1], "pBdr").find(qn("w:top"))
        assert top.get(qn("w:val")) == "single"
        assert top.get(qn("w:sz")) == "4"
        assert element_text(paragraphs[2]) == "b"

    @pytest.mark.parametrize(
        "before",
        ["<table><tr><td>x</td></tr></table>", '<div style="border-bottom: 1px solid #000">a</div>'],
    )
    def test_rule_spaced_after_table_or_bottom_border(self, before):
        spacing = find_property(_rule_paragraph(_convert(before + "<hr/>")), "spacing")
        assert spacing.get(qn("w:before")) == "240"

    def test_rule_after_plain_paragraph_not_spaced(self):
        assert find_property(_rule_paragraph(_convert("<p>a</p><hr/>")), "spacing") is None

    def test_definition_list(self):
        document = _convert("<dl><dt>Term</dt><dd>Meaning</dd></dl>")
        term, definition = non_empty_paragraphs(document)
        assert term.text == "Term"
        assert term.runs[0].bold
        assert definition.text == "Meaning"
        assert find_property(definition._p, "ind").get(qn("w:firstLine")) == "708"

    def test_figcaption(self):
        document = _convert("<figure><figcaption>Chart</figcaption></figure><figure><figcaption>Map</figcaption></figure>")
        captions = [p for p in body_blocks(document, "p") if element_text(p)]
        assert [element_text(p) for p in captions] == ["Figure 1 Chart", "Figure 2 Map"]
        field = captions[0].find(qn("w:fldSimple"))
        assert "SEQ Figure" in field.get(qn("w:instr"))
        assert style_id_of(captions[0]) == "Caption"

    def test_div_with_alignment_is_paragraph(self):
        document = _convert('<div align="center">centered</div><p>after</p>')
        paragraphs = non_empty_paragraphs(document)
        assert paragraphs[0].alignment == WD_ALIGN_PARAGRAPH.CENTER
        assert paragraphs[0].text == "centered"

    def test_plain_div_breaks_line(self):
        document = _convert("<div>a</div><div>b</div>")
        paragraphs = non_empty_paragraphs(document)
        assert len(paragraphs) == 1
        assert paragraphs[0].text.startswith("a\nb")


@pytest.mark.unit
@pytest.mark.docx
class TestLinks:
    """Tests for hyperlinks."""

    def _hyperlink(self, document):
        return body_blocks(document, "p")[0].find(qn("w:hyperlink"))

    def test_external_link(self):
        document = _convert('<p><a href="https://example.com" title="Example">site</a></p>')
        hyperlink = self._hyperlink(document)
        r_id = hyperlink.get(qn("r:id"))
        assert document.part.rels[r_id].target_ref == "https://example.com"
        assert document.part.rels[r_id].is_external
        assert hyperlink.get(qn("w:tooltip")) == "Example"
        run = hyperlink.find(qn("w:r"))
        assert run.find(f"{qn('w:rPr')}/{qn('w:rStyle')}").get(qn("w:val")) == "Hyperlink"

    def test_every_run_styled(self):
        document = _convert('<p><a href="https://example.com">a <b>b</b></a></p>')
        runs = self._hyperlink(document).findall(qn("w:r"))
        assert len(runs) == 2
        for run in runs:
            assert run.find(f"{qn('w:rPr')}/{qn('w:rStyle')}") is not None

    def test_anchor_link(self):
        document = _convert('<p><a href="#intro">Intro</a></p>')
        assert self._hyperlink(document).get(qn("w:anchor")) == "intro"

    def test_anchor_links_excluded(self):
        document = _convert('<p><a href="#intro">Intro</a></p>', exclude_link_anchor=True)
        assert self._hyperlink(document) is None
        assert _texts(document) == ["Intro"]

    def test_top_anchor_always_kept(self):
        document = _convert('<p><a href="#_top">Top</a></p>', exclude_link_anchor=True)
        assert self._hyperlink(document).get(qn("w:anchor")) == "_top"

    def test_javascript_link_degrades_to_text(self):
        document = _convert('<p><a href="javascript:alert(1)">x</a></p>')
        assert self._hyperlink(document) is None
        assert _texts(document) == ["x"]

    def test_www_link_gets_scheme(self):
        document = _convert('<p><a href="www.example.com">site</a></p>')
        r_id = self._hyperlink(document).get(qn("r:id"))
        assert document.part.rels[r_id].target_ref == "http://www.example.com"

    def test_link_without_href(self):
        document = _convert("<p><a>plain</a></p>")
        assert self._hyperlink(document) is None
        assert _texts(document) == ["plain"]


@pytest.mark.unit
@pytest.mark.docx
class TestCheckboxes:
    """Tests for task-list checkboxes."""

    def _checked_value(self, sdt):
        checked = sdt.find(f"{qn('w:sdtPr')}/{{{W14_NS}}}checkbox/{{{W14_NS}}}checked")
        return checked.get(f"{{{W14_NS}}}val")

    def test_task_list_item(self):
        document = _convert(
            '<ul><li><input type="checkbox" checked disabled/>done</li>'
            '<li><input type="checkbox" disabled/>todo</li></ul>'
        )
        done, todo = [p for p in body_blocks(document, "p") if element_text(p)]
        assert style_id_of(done) == "ListParagraph"
        assert num_id_of(done) == ""
        assert self._checked_value(done.find(qn("w:sdt"))) == "1"
        assert self._checked_value(todo.find(qn("w:sdt"))) == "0"
        assert element_text(done) == "☒ done"
        assert element_text(todo) == "☐ todo"

    def test_checkbox_comes_first(self):
        document = _convert('<ul><li><input type="checkbox"/>item</li></ul>')
        paragraph = [p for p in body_blocks(document, "p") if element_text(p)][0]
        children = [child.tag for child in paragraph]
        assert children[0] == qn("w:pPr")
        assert children[1] == qn("w:sdt")

    def test_inline_checkbox(self):
        document = _convert('<p>before <input type="checkbox" checked/> after</p>')
        paragraph = body_blocks(document, "p")[0]
        assert self._checked_value(paragraph.find(qn("w:sdt"))) == "1"

    def test_other_inputs_ignored(self):
        document = _convert('<p>a<input type="text"/>b</p>')
        assert body_blocks(document, "p")[0].find(qn("w:sdt")) is None
