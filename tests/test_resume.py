"""
Tests for resume text extraction.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

import io

import pytest

from voice_interview.errors import ResumeExtractionError
from voice_interview.resume import MANUAL_ENTRY_PROMPT, extract_resume_text, load_resume


def make_pdf(lines: list[str]) -> bytes:
    fitz = pytest.importorskip("fitz")
    doc = fitz.open()
    for line in lines:
        page = doc.new_page()
        page.insert_text((72, 72), line)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(paragraphs: list[str]) -> bytes:
    docx = pytest.importorskip("docx")
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestExtractResumeText:
    """Tests for extract_resume_text."""

    def test_pdf_pages_are_joined(self):
        data = make_pdf(["Jane Doe", "Senior Go Engineer"])

        text = extract_resume_text(data, "resume.pdf", "application/pdf")

        assert "Jane Doe" in text
        assert "Senior Go Engineer" in text
        assert text.index("Jane Doe") < text.index("Senior Go Engineer")
        assert text == text.strip()

    def test_docx_paragraphs_are_joined(self):
        data = make_docx(["Jane Doe", "5 years Go, distributed systems"])

        text = extract_resume_text(data, "Resume.DOCX")

        assert text == "Jane Doe\n5 years Go, distributed systems"

    def test_plain_text_is_decoded(self):
        assert extract_resume_text(b"C:\\users\\jane", "resume.txt") == "C:\\users\\jane"

    def test_corrupt_pdf_raises(self):
        pytest.importorskip("fitz")

        with pytest.raises(ResumeExtractionError) as exc_info:
            extract_resume_text(b"not a pdf", "resume.pdf")

        assert exc_info.value.filename == "resume.pdf"


class TestLoadResume:
    """Tests for the setup-form helper."""

    def test_success_message_for_pdf(self):
        data = make_pdf(["Jane Doe"])

        text, message = load_resume(data, "resume.pdf")

        assert "Jane Doe" in text
        assert message == "PDF text extracted successfully!"

    def test_success_message_for_word(self):
        data = make_docx(["Jane Doe"])

        text, message = load_resume(data, "resume.docx")

        assert text == "Jane Doe"
        assert message == "Document text extracted successfully!"

    def test_failure_asks_for_manual_entry(self):
        pytest.importorskip("docx")

        text, message = load_resume(b"garbage", "resume.docx")

        assert text == ""
        assert message == MANUAL_ENTRY_PROMPT

    def test_plain_text_has_no_message(self):
        assert load_resume(b"Jane Doe", "resume.txt") == ("Jane Doe", None)


def test_package_exports_resume_helpers():
    import voice_interview

    assert voice_interview.extract_resume_text is extract_resume_text
    assert voice_interview.load_resume is load_resume
    assert {"extract_resume_text", "load_resume"} <= set(voice_interview.__all__)
