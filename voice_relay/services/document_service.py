import io
import zipfile
from typing import Iterator

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from voice_relay.core.errors import DocumentReadError, UnsupportedFileType

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"

SUPPORTED_MIME_TYPES = (DOCX_MIME, TEXT_MIME)


def _base_mime(mime_type: str | None) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return (mime_type or "").split(";", 1)[0].strip().lower()


def _block_texts(element, parent) -> Iterator[str]:
    """
    Paragraph texts in document order, descending into table cells (and tables nested in them).
    """
    for child in element.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, parent).text
        elif child.tag == qn("w:tbl"):
            table = Table(child, parent)
            # merged cells show up once per grid cell they span, across columns and rows
            seen = set()
            for row in table.rows:
                for cell in row.cells:
                    if cell._tc in seen:
                        continue
                    seen.add(cell._tc)
                    yield from _block_texts(cell._tc, cell)


def _docx_text(data: bytes) -> str:
    try:
        document = Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise DocumentReadError(f"Could not read the Word document: {e}") from e
    return "\n\n".join(_block_texts(document.element.body, document))


def extract_text(data: bytes, mime_type: str | None) -> str:
    """
    Pulls plain text out of an uploaded document.

    Word (.docx) files go through python-docx, body paragraphs and table cells in
    reading order; plain text is decoded as UTF-8.

    Raises:
        UnsupportedFileType: any other MIME type
        DocumentReadError: the .docx is corrupt
    """
    kind = _base_mime(mime_type)
    if kind == DOCX_MIME:
        return _docx_text(data)
    if kind == TEXT_MIME:
        return data.decode("utf-8", errors="replace")
    raise UnsupportedFileType("Unsupported file type")
