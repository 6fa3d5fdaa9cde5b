"""PDF text extraction — docling with a pypdf fallback.

Works from a file path (host CLI) or from raw bytes (the relay's
``/extract-pdf`` endpoint).  Extraction happens before any LLM call, so a
document that yields no text fails early and cheaply.
"""

import io
import logging
import threading
from pathlib import Path

from docling.datamodel.base_models import DocumentStream
from docling.document_converter import DocumentConverter
from pypdf import PdfReader

from paperblog.models import ParseError

logger = logging.getLogger(__name__)

_DOCLING_LOCK = threading.Lock()


def extract_text(pdf_path: Path, extractor: str = "auto") -> str:
    """Extract the text of the PDF at ``pdf_path``.

    Args:
        pdf_path:  Path to the PDF file.
        extractor: ``auto`` (docling with pypdf fallback), ``docling`` (docling
                   only), or ``pypdf`` (pypdf only).

    Raises:
        ParseError: if extraction fails or produces no text.
    """
    logger.info("Running %s extraction on: %s", extractor, pdf_path.name)
    try:
        data = pdf_path.read_bytes()
    except OSError as e:
        raise ParseError(f"Failed to read {pdf_path}: {e}") from e
    text = extract_text_from_bytes(data, pdf_path.name, extractor=extractor)
    logger.info("Extraction complete: %s chars", f"{len(text):,}")
    return text


def extract_text_from_bytes(data: bytes, filename: str, extractor: str = "auto") -> str:
    """Extract text from an in-memory PDF named ``filename``."""
    if extractor == "docling":
        with _DOCLING_LOCK:
            return _run_docling(data, filename)
    if extractor == "pypdf":
        return _extract_text_with_pypdf(data, filename)
    return _run_docling_with_fallback(data, filename)


def _run_docling_with_fallback(data: bytes, filename: str) -> str:
    """Run docling, then fall back to pypdf text extraction on failure."""
    try:
        # Docling conversions are not thread-safe; the relay serves requests
        # from a thread pool.
        with _DOCLING_LOCK:
            return _run_docling(data, filename)
    except ParseError as docling_exc:
        logger.warning(
            "Docling parse failed for %s; attempting pypdf fallback: %s",
            filename,
            docling_exc,
        )
        try:
            text = _extract_text_with_pypdf(data, filename)
        except ParseError as fallback_exc:
            root_cause = docling_exc.__cause__ or docling_exc
            raise ParseError(
                f"Failed to parse {filename}: docling and pypdf fallback failed ({fallback_exc})"
            ) from root_cause

        logger.warning(
            "Using pypdf fallback text extraction for %s (%s chars)",
            filename,
            f"{len(text):,}",
        )
        return text


def _run_docling(data: bytes, filename: str) -> str:
    """Convert with docling and return the document as markdown.

    Raises:
        ParseError: wrapping any exception raised by docling.
    """
    try:
        converter = DocumentConverter()
        source = DocumentStream(name=filename, stream=io.BytesIO(data))
        result = converter.convert(source)
        return result.document.export_to_markdown()
    except Exception as e:
        raise ParseError(f"Failed to parse {filename}: {e}") from e


def _extract_text_with_pypdf(data: bytes, filename: str) -> str:
    """Extract plain page text with pypdf."""
    try:
        reader = PdfReader(io.BytesIO(data))
        pages: list[str] = []
        for page in reader.pages:
            pages.append(page.extract_text() or "")
        text = "\n\n".join(pages).strip()
        if not text:
            raise ParseError(f"Failed to parse {filename}: pypdf extracted empty text")
        logger.debug("pypdf extracted %d pages from %s", len(pages), filename)
        return text
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(
            f"Failed to parse {filename}: pypdf error: {e}"
        ) from e
