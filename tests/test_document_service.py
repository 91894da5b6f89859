import io

import pytest
from docx import Document

from voice_relay.core.errors import ClientInputError, DocumentReadError, UnsupportedFileType
from voice_relay.services.document_service import DOCX_MIME, extract_text


@pytest.mark.parametrize(
    "text",
    ["plain ascii line", "多位元組：繁體中文 ✓", "tiếng Việt\nภาษาไทย\n日本語", ""],
)
def test_plain_text_is_decoded_as_utf8(text):
    assert extract_text(text.encode("utf-8"), "text/plain") == text


def test_plain_text_with_charset_parameter():
    assert extract_text(b"hello", "text/plain; charset=utf-8") == "hello"


def test_docx_paragraphs_are_extracted():
    document = Document()
    document.add_paragraph("Agenda")
    document.add_paragraph("1. 預算")
    buffer = io.BytesIO()
    document.save(buffer)

    text = extract_text(buffer.getvalue(), DOCX_MIME)

    assert "Agenda" in text
    assert text.index("Agenda") < text.index("1. 預算")


def test_corrupt_docx_is_a_client_error():
    with pytest.raises(DocumentReadError) as exc_info:
        extract_text(b"definitely not a zip", DOCX_MIME)
    assert isinstance(exc_info.value, ClientInputError)
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("mime", ["application/pdf", "application/msword", "image/png", "", None])
def test_unsupported_types_are_rejected(mime):
    with pytest.raises(UnsupportedFileType) as exc_info:
        extract_text(b"data", mime)
    assert exc_info.value.status_code == 400


def test_docx_table_cells_are_extracted_in_reading_order():
    document = Document()
    document.add_paragraph("Agenda")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Budget"
    table.cell(0, 1).text = "NT$500"
    table.cell(1, 0).text = "Owner"
    table.cell(1, 1).text = "王小明"
    document.add_paragraph("Closing remarks")
    buffer = io.BytesIO()
    document.save(buffer)

    text = extract_text(buffer.getvalue(), DOCX_MIME)

    order = ["Agenda", "Budget", "NT$500", "Owner", "王小明", "Closing remarks"]
    positions = [text.index(part) for part in order]
    assert positions == sorted(positions)


def test_docx_merged_and_nested_cells_are_read_once():
    document = Document()
    table = document.add_table(rows=1, cols=3)
    merged = table.cell(0, 0).merge(table.cell(0, 1))
    merged.text = "Merged heading"
    tall = table.add_row().cells[0].merge(table.add_row().cells[0])
    tall.text = "Spans two rows"
    inner = table.cell(0, 2).add_table(rows=1, cols=1)
    inner.cell(0, 0).text = "Nested value"
    buffer = io.BytesIO()
    document.save(buffer)

    text = extract_text(buffer.getvalue(), DOCX_MIME)

    assert text.count("Merged heading") == 1
    assert text.count("Spans two rows") == 1
    assert "Nested value" in text
