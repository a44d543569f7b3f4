"""
Tests for the markup parser.
"""

import pytest

from docstamp.exceptions import ExtractionError
from docstamp.models.content import Alignment, ElementKind
from docstamp.parser.markup_parser import (
    MarkupParser,
    build_content_elements,
    decode_image_source,
    probe_image_size,
    split_blocks,
)


def kinds(elements):
    return [element.kind for element in elements]


class TestDocumentOrder:
    """Test that elements come out in source order."""

    def test_mixed_document_order(self, png_data_url):
        """Headings, paragraphs, tables, lists and images keep their order."""
        html = f"""
        <html><body>
        <h1>Quarterly Report</h1>
        <p>Intro paragraph with enough text.</p>
        <table><tr><th>Name</th><th>Value</th></tr><tr><td>A</td><td>1</td></tr></table>
        <p>After the table.</p>
        <ul><li>First item</li><li>Second item</li></ul>
        <img alt="Chart" src="{png_data_url}">
        </body></html>
        """
        elements = build_content_elements(html)

        assert kinds(elements) == [
            ElementKind.HEADING,
            ElementKind.PARAGRAPH,
            ElementKind.TABLE,
            ElementKind.PARAGRAPH,
            ElementKind.LIST,
            ElementKind.LIST,
            ElementKind.IMAGE,
        ]
        indices = [element.source_index for element in elements]
        assert indices == sorted(indices)

    def test_duplicate_text_is_kept(self):
        """Identical paragraphs are separate elements."""
        html = "<p>Repeated paragraph text</p><p>Repeated paragraph text</p>"
        elements = build_content_elements(html)

        assert [e.text for e in elements] == ["Repeated paragraph text", "Repeated paragraph text"]
        assert elements[0].source_index < elements[1].source_index

    def test_loose_text_split_on_blank_lines(self):
        """Text outside block tags becomes paragraphs split on blank lines."""
        html = "<div>Loose text block one\n\nLoose text block two<p>Closing paragraph</p></div>"
        elements = build_content_elements(html)

        assert [e.text for e in elements] == [
            "Loose text block one",
            "Loose text block two",
            "Closing paragraph",
        ]
        assert elements[0].source_index == elements[1].source_index
        assert elements[1].source_index < elements[2].source_index


class TestTextBlocks:
    """Test headings, paragraphs and style hints."""

    def test_heading_levels(self):
        html = "<h1>Main title</h1><h3>Sub section</h3><p>Body text goes here.</p>"
        elements = build_content_elements(html)

        assert elements[0].kind is ElementKind.HEADING
        assert elements[0].level == 1
        assert elements[1].level == 3
        assert elements[0].style.bold

    def test_paragraph_defaults_to_justify(self):
        elements = build_content_elements("<p>A plain paragraph of body text.</p>")
        assert elements[0].style.alignment is Alignment.JUSTIFY

    def test_alignment_from_style_and_attribute(self):
        html = (
            '<p style="text-align: center">Centered paragraph text</p>'
            '<p align="right">Right aligned paragraph</p>'
        )
        elements = build_content_elements(html)

        assert elements[0].style.alignment is Alignment.CENTER
        assert elements[1].style.alignment is Alignment.RIGHT

    def test_fully_bold_paragraph(self):
        html = "<p><strong>Entire paragraph in bold</strong></p><p>Some <b>bold</b> words only</p>"
        elements = build_content_elements(html)

        assert elements[0].style.bold
        assert not elements[1].style.bold

    def test_blockquote_is_italic(self):
        elements = build_content_elements("<blockquote>A quoted passage of text</blockquote>")

        assert elements[0].kind is ElementKind.PARAGRAPH
        assert elements[0].style.italic

    def test_list_item_class(self):
        elements = build_content_elements('<p class="list-item">Bulleted paragraph item</p>')

        assert elements[0].kind is ElementKind.LIST
        assert elements[0].text == "• Bulleted paragraph item"

    def test_spacers(self):
        html = "<p>Some real paragraph content.</p><p></p><hr><p>More content</p>"
        elements = build_content_elements(html)

        assert kinds(elements) == [
            ElementKind.PARAGRAPH,
            ElementKind.SPACER,
            ElementKind.SPACER,
            ElementKind.PARAGRAPH,
        ]

    def test_whitespace_normalized(self):
        elements = build_content_elements("<p>  Spaced \n\t out   paragraph text  </p>")
        assert elements[0].text == "Spaced out paragraph text"

    def test_bytes_input(self):
        elements = build_content_elements("<p>Zażółć gęślą jaźń paragraph</p>".encode("utf-8"))
        assert elements[0].text == "Zażółć gęślą jaźń paragraph"

    def test_encoding_declaration(self):
        html = "<?xml version='1.0' encoding='utf-8'?><html><body><p>Paragraph with declaration text.</p></body></html>"
        elements = build_content_elements(html)

        assert [e.text for e in elements] == ["Paragraph with declaration text."]

    def test_declared_encoding_bytes(self):
        html = "<?xml version='1.0' encoding='iso-8859-2'?><html><body><p>Zażółć gęślą jaźń paragraph</p></body></html>"
        elements = build_content_elements(html.encode("iso-8859-2"))

        assert elements[0].text == "Zażółć gęślą jaźń paragraph"

    def test_byte_order_mark_stripped(self):
        elements = build_content_elements(b"\xef\xbb\xbf<p>Paragraph after a byte order mark</p>")
        assert elements[0].text == "Paragraph after a byte order mark"


class TestLists:
    """Test list markers and nesting."""

    def test_bullets(self):
        elements = build_content_elements("<ul><li>First item</li><li>Second item</li></ul>")

        assert [e.text for e in elements] == ["• First item", "• Second item"]
        assert all(e.level == 1 for e in elements)

    def test_ordered_numbers(self):
        elements = build_content_elements('<ol start="3"><li>Third step</li><li>Fourth step</li></ol>')
        assert [e.text for e in elements] == ["3. Third step", "4. Fourth step"]

    def test_nested_levels(self):
        html = "<ul><li>Parent item<ul><li>Child item</li></ul></li><li>Sibling item</li></ul>"
        elements = build_content_elements(html)

        assert [(e.text, e.level) for e in elements] == [
            ("• Parent item", 1),
            ("• Child item", 2),
            ("• Sibling item", 1),
        ]

    def test_loose_text_between_items_kept(self):
        html = "<ul>Lead-in text<li>First item text</li>Stray loose sentence here<li>Second item</li></ul>"
        elements = build_content_elements(html)

        assert [(e.kind, e.text) for e in elements] == [
            (ElementKind.PARAGRAPH, "Lead-in text"),
            (ElementKind.LIST, "• First item text"),
            (ElementKind.PARAGRAPH, "Stray loose sentence here"),
            (ElementKind.LIST, "• Second item"),
        ]
        indices = [e.source_index for e in elements]
        assert indices == sorted(indices)


class TestTables:
    """Test table extraction."""

    def test_header_and_body_rows(self):
        html = (
            "<p>Table follows below here.</p>"
            "<table><thead><tr><td>Name</td><td>Value</td></tr></thead>"
            "<tbody><tr><td>Alpha</td><td>1</td></tr><tr><td>Beta</td><td>2</td></tr></tbody></table>"
        )
        table = build_content_elements(html)[1]

        assert table.kind is ElementKind.TABLE
        assert len(table.table.rows) == 3
        assert table.table.rows[0].is_header
        assert table.table.has_headers
        assert table.table.column_count == 2
        assert table.table.rows[0].cells[0].alignment is Alignment.CENTER
        assert not table.table.rows[1].cells[0].is_header

    def test_cell_content_not_repeated(self):
        """Paragraphs inside cells belong to the table only."""
        html = "<table><tr><th>Label</th></tr><tr><td><p>Cell paragraph text</p></td></tr></table>"
        elements = build_content_elements(html)

        assert kinds(elements) == [ElementKind.TABLE]
        assert elements[0].table.rows[1].cells[0].text == "Cell paragraph text"

    def test_nested_table_flattened_into_cell(self):
        html = (
            "<p>Nested table example text.</p>"
            "<table><tr><td>outer <table><tr><td>inner</td></tr></table></td></tr></table>"
        )
        elements = build_content_elements(html)

        tables = [e for e in elements if e.kind is ElementKind.TABLE]
        assert len(tables) == 1
        assert len(tables[0].table.rows) == 1
        assert "inner" in tables[0].table.rows[0].cells[0].text

    def test_empty_table_dropped(self, caplog):
        html = "<p>Paragraph before an empty table.</p><table></table>"
        elements = build_content_elements(html)

        assert kinds(elements) == [ElementKind.PARAGRAPH]
        assert "no rows parsed" in caplog.text


class TestImages:
    """Test image extraction."""

    def test_data_url_image(self, png_bytes, png_data_url):
        html = f'<p>Figure below this line.</p><img alt="Red box" src="{png_data_url}">'
        image = build_content_elements(html)[1]

        assert image.kind is ElementKind.IMAGE
        assert image.image.payload == png_bytes
        assert image.image.mime_type == "image/png"
        assert image.image.original_width == 40
        assert image.image.original_height == 20
        assert image.image.alt_text == "Red box"

    def test_external_source_has_no_payload(self):
        html = '<p>Figure below this line.</p><img src="logo.png" width="300" height="200">'
        image = build_content_elements(html)[1]

        assert image.image.payload == b""
        assert image.image.original_width == 300
        assert image.image.alt_text == "Embedded image"

    def test_image_inside_paragraph_follows_text(self, png_data_url):
        html = f'<p>Caption text before the image <img src="{png_data_url}"></p>'
        elements = build_content_elements(html)

        assert kinds(elements) == [ElementKind.PARAGRAPH, ElementKind.IMAGE]

    def test_decode_image_source(self, png_bytes, png_data_url):
        assert decode_image_source(png_data_url) == (png_bytes, "image/png")
        assert decode_image_source("data:image/jpg;base64,AAAA")[1] == "image/jpeg"
        assert decode_image_source("data:image/bmp;base64,AAAA")[0] == b""
        assert decode_image_source("https://example.com/a.png")[0] == b""

    def test_probe_image_size(self, png_bytes):
        assert probe_image_size(png_bytes) == (40.0, 20.0)
        assert probe_image_size(b"not an image") is None


class TestRejection:
    """Test empty and corrupt sources."""

    def test_short_markup_rejected(self):
        with pytest.raises(ExtractionError):
            build_content_elements("<p>tiny</p>")

    def test_empty_input_rejected(self):
        with pytest.raises(ExtractionError):
            build_content_elements(b"")

    def test_whitespace_body_rejected(self):
        with pytest.raises(ExtractionError):
            build_content_elements("<html><body>   \n  </body></html>")

    def test_configurable_minimum(self):
        elements = MarkupParser(min_text_length=3).parse("<p>tiny</p>")
        assert elements[0].text == "tiny"

    def test_load_then_build(self):
        parser = MarkupParser()
        text = parser.load("<h2>Section</h2><p>Paragraph of text body.</p>")

        assert text == "SectionParagraph of text body."
        assert kinds(parser.build()) == [ElementKind.HEADING, ElementKind.PARAGRAPH]


class TestPlainText:
    """Test plain-text input."""

    def test_blocks_split_on_blank_lines(self):
        elements = build_content_elements("First block of plain text here.\n\nSecond block of text.")

        assert [e.text for e in elements] == ["First block of plain text here.", "Second block of text."]
        assert all(e.kind is ElementKind.PARAGRAPH for e in elements)

    def test_split_blocks(self):
        assert split_blocks("a\n \nb\n c\n\n\n") == ["a", "b c"]
