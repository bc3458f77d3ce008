"""Resume text extraction from uploaded documents."""

from __future__ import annotations

import io
import logging
from typing import Optional

from .errors import ResumeExtractionError


__all__ = ["MANUAL_ENTRY_PROMPT", "extract_resume_text", "load_resume"]


logger = logging.getLogger(__name__)


MANUAL_ENTRY_PROMPT = (
    "Failed to extract text from file. Please copy and paste the text manually."
)

PDF_CONTENT_TYPES = {"application/pdf"}
WORD_CONTENT_TYPES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def _is_pdf(filename: str, content_type: Optional[str]) -> bool:
    return content_type in PDF_CONTENT_TYPES or filename.endswith(".pdf")


def _is_word(filename: str, content_type: Optional[str]) -> bool:
    return content_type in WORD_CONTENT_TYPES or filename.endswith((".doc", ".docx"))


def _extract_pdf(data: bytes) -> str:
    try:
        import fitz  # PyMuPDF
    except ImportError as exc:  # pragma: no cover - dependency missing at runtime
        raise RuntimeError("PyMuPDF is required for PDF text extraction") from exc

    with fitz.open(stream=data, filetype="pdf") as doc:
        text = "".join(page.get_text("text") + "\n\n" for page in doc)
    return text.strip()


def _extract_word(data: bytes) -> str:
    try:
        import docx
    except ImportError as exc:  # pragma: no cover - dependency missing at runtime
        raise RuntimeError("python-docx is required for Word text extraction") from exc

    document = docx.Document(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs).strip()


def extract_resume_text(
    data: bytes,
    filename: str,
    content_type: Optional[str] = None,
) -> str:
    """
    Extract plain text from a resume upload.

    PDFs are read page by page and joined with blank lines; Word
    documents paragraph by paragraph; anything else is decoded as UTF-8.

    Raises:
        ResumeExtractionError: If the document could not be parsed.
    """
    name = (filename or "").lower()
    try:
        if _is_pdf(name, content_type):
            return _extract_pdf(data)
        if _is_word(name, content_type):
            return _extract_word(data)
        return data.decode("utf-8", errors="replace")
    except Exception as e:
        raise ResumeExtractionError(filename, e) from e


def load_resume(
    data: bytes,
    filename: str,
    content_type: Optional[str] = None,
) -> tuple[str, Optional[str]]:
    """
    Extract resume text for the setup form.

    Returns:
        (text, message). On failure the text is empty and the message asks
        the user to paste the resume manually.
    """
    try:
        text = extract_resume_text(data, filename, content_type)
    except ResumeExtractionError as e:
        logger.error("Error extracting text: %s", e)
        return "", MANUAL_ENTRY_PROMPT

    name = (filename or "").lower()
    if _is_pdf(name, content_type):
        return text, "PDF text extracted successfully!"
    if _is_word(name, content_type):
        return text, "Document text extracted successfully!"
    return text, None
