"""Resume text extraction from raw file bytes.

PDF uses pymupdf and DOCX uses python-docx; both are optional dependencies
imported on first use.
"""

import io
import logging
from pathlib import PurePosixPath

from recruitsearch.core.errors import TextExtractionError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("txt", "pdf", "docx")

CONTENT_TYPE_FORMATS = {
    "text/plain": "txt",
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
}


def format_for_content_type(content_type: str | None) -> str | None:
    """Map an upload content type to a resume format, None when unknown."""
    if not content_type:
        return None
    return CONTENT_TYPE_FORMATS.get(content_type.split(";", 1)[0].strip().lower())


def detect_format(file_name: str, declared: str | None = None) -> str:
    """Return the lower-case format from the declared value or the file extension."""
    if declared:
        return declared.strip().lower().lstrip(".")
    return PurePosixPath(file_name).suffix.lower().lstrip(".")


def extract_text(data: bytes, file_name: str = "", declared_format: str | None = None) -> str:
    """Turn resume bytes into plain text.

    Raises:
        TextExtractionError: If the format is unsupported (legacy ``.doc``)
            or the document cannot be read.
    """
    fmt = detect_format(file_name, declared_format)

    if fmt == "pdf":
        text = _pdf_text(data)
    elif fmt == "docx":
        text = _docx_text(data)
    elif fmt == "doc":
        msg = "Legacy .doc resumes are not supported; convert to DOCX or PDF"
        raise TextExtractionError(msg, details={"file": file_name, "format": fmt})
    else:
        # txt and unknown extensions are read as UTF-8 text.
        text = data.decode("utf-8", errors="replace")

    logger.debug("Extracted %d chars from %s (%s)", len(text), file_name or "<bytes>", fmt or "txt")
    return text


def _pdf_text(data: bytes) -> str:
    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for PDF extraction. "
            "Install with: pip install 'recruitsearch[resume]'"
        )
        raise ImportError(msg) from None

    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except Exception as e:
        msg = f"Failed to open PDF: {e}"
        raise TextExtractionError(msg) from e

    text_parts: list[str] = []
    try:
        for page in doc:
            text_parts.append(page.get_text())
    finally:
        doc.close()

    return "\n".join(text_parts)


def _docx_text(data: bytes) -> str:
    try:
        import docx
    except ImportError:
        msg = (
            "python-docx is required for DOCX extraction. "
            "Install with: pip install 'recruitsearch[resume]'"
        )
        raise ImportError(msg) from None

    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        msg = f"Failed to open DOCX: {e}"
        raise TextExtractionError(msg) from e

    text_parts = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text.strip():
                    text_parts.append(cell.text)

    return "\n".join(text_parts)
