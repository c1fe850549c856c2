"""Tests for importing uploaded files into note blocks."""

from __future__ import annotations

from io import BytesIO

import pytest
from docx import Document

from research_notes.document_models import TableBlock, TextBlock
from research_notes.document_processing import UnsupportedDocumentError, load_document


def _docx_bytes() -> bytes:
    document = Document()
    document.add_paragraph("Sampling plan")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Site"
    table.cell(0, 1).text = "Depth"
    table.cell(1, 0).text = "North"
    table.cell(1, 1).text = "2 m"
    document.add_paragraph("Results follow.")
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_docx_paragraphs_and_tables_keep_order() -> None:
    doc = load_document("plan.docx", _docx_bytes())

    assert [block.type for block in doc.blocks] == ["text", "table", "text"]
    assert doc.blocks[0].content == "Sampling plan"
    table = doc.blocks[1]
    assert isinstance(table, TableBlock)
    assert table.table_data.rows == [["Site", "Depth"], ["North", "2 m"]]
    assert table.table_data.col_headers is None
    assert doc.blocks[2].content == "Results follow."


def test_text_file_pipe_tables_become_table_blocks() -> None:
    payload = "Intro line\n\n| Dose | Effect |\n|---|:---:|\n| 1 | low |\n| 2 |\nOutro".encode()

    doc = load_document("notes.md", payload)

    assert [block.type for block in doc.blocks] == ["text", "table", "text"]
    assert doc.blocks[0].content == "Intro line"
    assert doc.blocks[1].table_data.rows == [["Dose", "Effect"], ["1", "low"], ["2", ""]]
    assert doc.blocks[2].content == "Outro"


def test_trailing_table_gets_text_block_after_it() -> None:
    doc = load_document("grid.txt", b"| a | b |")

    assert [block.type for block in doc.blocks] == ["table", "text"]
    assert doc.blocks[-1].content == ""


def test_empty_text_file_gives_fresh_document() -> None:
    doc = load_document("empty.txt", b"\n\n")

    assert len(doc) == 1
    assert isinstance(doc.blocks[0], TextBlock)


def test_block_ids_are_unique() -> None:
    doc = load_document("plan.docx", _docx_bytes())

    assert len(set(doc.ids)) == len(doc)


@pytest.mark.parametrize("filename", ["report.pdf", "image.png", ""])
def test_unsupported_files_are_rejected(filename: str) -> None:
    with pytest.raises(UnsupportedDocumentError):
        load_document(filename, b"data")
