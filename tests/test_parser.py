"""Tests for paperblog/parser.py — docling and pypdf text extraction."""

from unittest.mock import MagicMock, patch

import pytest

from paperblog.models import ParseError
from paperblog.parser import extract_text, extract_text_from_bytes


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pdf(tmp_path, name="paper.pdf"):
    pdf = tmp_path / name
    pdf.write_bytes(b"%PDF-1.4 fake content")
    return pdf


def _pypdf_pages(*texts):
    reader = MagicMock()
    reader.pages = [MagicMock(**{"extract_text.return_value": t}) for t in texts]
    return reader


# ---------------------------------------------------------------------------
# docling
# ---------------------------------------------------------------------------


def test_extract_text_uses_docling_markdown(tmp_path):
    pdf = _pdf(tmp_path)
    mock_result = MagicMock()
    mock_result.document.export_to_markdown.return_value = "# Title\n\nBody"
    with patch("paperblog.parser.DocumentConverter") as MockConverter:
        MockConverter.return_value.convert.return_value = mock_result
        assert extract_text(pdf) == "# Title\n\nBody"


def test_docling_only_raises_without_fallback(tmp_path):
    pdf = _pdf(tmp_path, "bad.pdf")
    with (
        patch("paperblog.parser.DocumentConverter") as MockConverter,
        patch("paperblog.parser.PdfReader") as MockReader,
    ):
        MockConverter.return_value.convert.side_effect = RuntimeError("docling internal error")
        with pytest.raises(ParseError, match="bad.pdf"):
            extract_text(pdf, extractor="docling")
    MockReader.assert_not_called()


# ---------------------------------------------------------------------------
# Fallback and pypdf
# ---------------------------------------------------------------------------


def test_auto_falls_back_to_pypdf(tmp_path, caplog):
    pdf = _pdf(tmp_path)
    with (
        patch("paperblog.parser.DocumentConverter") as MockConverter,
        patch("paperblog.parser.PdfReader", return_value=_pypdf_pages("page one", "page two")),
    ):
        MockConverter.return_value.convert.side_effect = RuntimeError("boom")
        text = extract_text(pdf, extractor="auto")
    assert text == "page one\n\npage two"
    assert "pypdf fallback" in caplog.text


def test_auto_both_fail_chains_docling_cause(tmp_path):
    pdf = _pdf(tmp_path)
    original = RuntimeError("deep failure")
    with (
        patch("paperblog.parser.DocumentConverter") as MockConverter,
        patch("paperblog.parser.PdfReader", return_value=_pypdf_pages("", None)),
    ):
        MockConverter.return_value.convert.side_effect = original
        with pytest.raises(ParseError, match="docling and pypdf fallback failed") as exc_info:
            extract_text(pdf)
    assert exc_info.value.__cause__ is original


def test_pypdf_only_skips_docling(tmp_path):
    pdf = _pdf(tmp_path)
    with (
        patch("paperblog.parser.DocumentConverter") as MockConverter,
        patch("paperblog.parser.PdfReader", return_value=_pypdf_pages("only text")),
    ):
        assert extract_text(pdf, extractor="pypdf") == "only text"
    MockConverter.assert_not_called()


def test_pypdf_reader_error_is_wrapped():
    with patch("paperblog.parser.PdfReader", side_effect=ValueError("EOF marker not found")):
        with pytest.raises(ParseError, match="pypdf error: EOF marker not found"):
            extract_text_from_bytes(b"junk", "junk.pdf", extractor="pypdf")


# ---------------------------------------------------------------------------
# Paths and bytes
# ---------------------------------------------------------------------------


def test_missing_file_raises_parse_error(tmp_path):
    with pytest.raises(ParseError, match="Failed to read"):
        extract_text(tmp_path / "missing.pdf")


def test_extract_from_bytes_passes_stream_name():
    mock_result = MagicMock()
    mock_result.document.export_to_markdown.return_value = "text"
    with patch("paperblog.parser.DocumentConverter") as MockConverter:
        MockConverter.return_value.convert.return_value = mock_result
        extract_text_from_bytes(b"%PDF", "upload.pdf", extractor="docling")
    source = MockConverter.return_value.convert.call_args.args[0]
    assert source.name == "upload.pdf"
