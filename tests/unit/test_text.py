"""Tests for resume text extraction (pymupdf and python-docx mocked)."""

from unittest.mock import MagicMock, patch

import pytest

from recruitsearch.core.errors import TextExtractionError
from recruitsearch.resume.text import detect_format, extract_text, format_for_content_type


class TestDetectFormat:
    def test_from_extension(self) -> None:
        assert detect_format("cv.PDF") == "pdf"
        assert detect_format("folder/cv.docx") == "docx"

    def test_declared_wins(self) -> None:
        assert detect_format("cv.bin", ".Docx") == "docx"

    def test_no_extension(self) -> None:
        assert detect_format("resume") == ""


class TestFormatForContentType:
    def test_known_types(self) -> None:
        assert format_for_content_type("application/pdf") == "pdf"
        assert format_for_content_type("text/plain; charset=utf-8") == "txt"
        assert format_for_content_type("application/msword") == "doc"

    def test_unknown_or_missing(self) -> None:
        assert format_for_content_type("image/png") is None
        assert format_for_content_type(None) is None


class TestPlainText:
    def test_utf8(self) -> None:
        assert extract_text("Señor Python".encode(), "cv.txt") == "Señor Python"

    def test_invalid_bytes_replaced(self) -> None:
        assert extract_text(b"abc\xff", "cv.txt") == "abc�"

    def test_unknown_extension_read_as_text(self) -> None:
        assert extract_text(b"plain", "cv.rtf") == "plain"

    def test_legacy_doc_rejected(self) -> None:
        with pytest.raises(TextExtractionError, match="Legacy .doc"):
            extract_text(b"\xd0\xcf", "cv.doc")


class TestPdf:
    def test_pages_joined(self) -> None:
        page1, page2 = MagicMock(), MagicMock()
        page1.get_text.return_value = "Page one"
        page2.get_text.return_value = "Page two"
        doc = MagicMock()
        doc.__iter__.return_value = iter([page1, page2])
        mock_pymupdf = MagicMock()
        mock_pymupdf.open.return_value = doc

        with patch.dict("sys.modules", {"pymupdf": mock_pymupdf}):
            text = extract_text(b"%PDF", "cv.pdf")

        assert text == "Page one\nPage two"
        mock_pymupdf.open.assert_called_once_with(stream=b"%PDF", filetype="pdf")
        doc.close.assert_called_once()

    def test_corrupt_pdf(self) -> None:
        mock_pymupdf = MagicMock()
        mock_pymupdf.open.side_effect = RuntimeError("cannot open broken document")
        with (
            patch.dict("sys.modules", {"pymupdf": mock_pymupdf}),
            pytest.raises(TextExtractionError, match="Failed to open PDF"),
        ):
            extract_text(b"junk", "cv.pdf")

    def test_missing_library(self) -> None:
        with (
            patch.dict("sys.modules", {"pymupdf": None}),
            pytest.raises(ImportError, match="pymupdf is required"),
        ):
            extract_text(b"%PDF", "cv.pdf")


class TestDocx:
    def test_paragraphs_and_tables(self) -> None:
        cell = MagicMock(text="Kubernetes")
        row = MagicMock(cells=[cell, MagicMock(text="  ")])
        table = MagicMock(rows=[row])
        document = MagicMock(
            paragraphs=[MagicMock(text="Jane Doe"), MagicMock(text=""), MagicMock(text="Python")],
            tables=[table],
        )
        mock_docx = MagicMock()
        mock_docx.Document.return_value = document

        with patch.dict("sys.modules", {"docx": mock_docx}):
            text = extract_text(b"PK", "cv.docx")

        assert text == "Jane Doe\nPython\nKubernetes"

    def test_missing_library(self) -> None:
        with (
            patch.dict("sys.modules", {"docx": None}),
            pytest.raises(ImportError, match="python-docx is required"),
        ):
            extract_text(b"PK", "cv.docx")
