"""
Cover letter PDF layout.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from data_models import GeneratedDocument, PersonalInfo
from errors import RenderError

LOGGER = logging.getLogger(__name__)

DOCUMENT_TITLE = "Cover Letter"
DOCUMENT_AUTHOR = "AutoApply AI"
FOOTER_TEXT = "Generated by AutoApply AI"
PAGE_MARGIN = 50

NAME_STYLE = ParagraphStyle("LetterName", fontName="Helvetica-Bold", fontSize=12, leading=14.4, spaceAfter=6)
DETAIL_STYLE = ParagraphStyle("LetterDetail", fontName="Helvetica", fontSize=10, leading=12, spaceAfter=6)
CONTACT_STYLE = ParagraphStyle("LetterContact", parent=DETAIL_STYLE, spaceAfter=12)
DATE_STYLE = ParagraphStyle(
    "LetterDate", fontName="Helvetica", fontSize=11, leading=13.2, alignment=TA_RIGHT, spaceAfter=26
)
# 5pt gap between body lines on top of the font's natural leading
BODY_STYLE = ParagraphStyle(
    "LetterBody", fontName="Helvetica", fontSize=11, leading=18.2, alignment=TA_LEFT, spaceAfter=11
)
FOOTER_STYLE = ParagraphStyle(
    "LetterFooter", fontName="Helvetica-Oblique", fontSize=9, leading=10.8, alignment=TA_CENTER
)


def format_letter_date(value: date) -> str:
    """Format a date as e.g. "March 5, 2025"."""
    return f"{value:%B} {value.day}, {value.year}"


def _body_paragraphs(body_text: str) -> List[Paragraph]:
    blocks = [block.strip() for block in re.split(r"\n\s*\n", body_text.strip()) if block.strip()]
    paragraphs = []
    for block in blocks:
        lines = [escape(line.strip()) for line in block.splitlines()]
        paragraphs.append(Paragraph("<br/>".join(lines), BODY_STYLE))
    return paragraphs


def _header(personal_info: PersonalInfo) -> List[Paragraph]:
    flowables = []
    if personal_info.first_name or personal_info.last_name:
        flowables.append(Paragraph(escape(personal_info.full_name), NAME_STYLE))
    if personal_info.address:
        flowables.append(Paragraph(escape(personal_info.address), DETAIL_STYLE))
    contact = " | ".join(value for value in (personal_info.email, personal_info.phone) if value)
    if contact:
        flowables.append(Paragraph(escape(contact), CONTACT_STYLE))
    return flowables


def render_cover_letter(
    body_text: str,
    personal_info: PersonalInfo,
    subject_hint: Optional[str] = None,
    letter_date: Optional[date] = None,
) -> GeneratedDocument:
    """
    Lay out a cover letter as an A4 PDF.

    Empty header fields are left out entirely. Long bodies flow onto
    additional pages. Output is byte-identical for identical inputs and date.

    Args:
        body_text: Letter body, paragraphs separated by blank lines.
        personal_info: Contact details for the header.
        subject_hint: Optional job title recorded in the PDF subject.
        letter_date: Date printed on the letter; defaults to today.

    Returns:
        GeneratedDocument holding the PDF bytes.

    Raises:
        RenderError: If layout fails.
    """
    letter_date = letter_date or date.today()
    subject = f"{DOCUMENT_TITLE} for {subject_hint}" if subject_hint else DOCUMENT_TITLE

    story: List = _header(personal_info)
    story.append(Paragraph(format_letter_date(letter_date), DATE_STYLE))
    story.extend(_body_paragraphs(body_text))
    story.append(Spacer(1, 22))
    story.append(Paragraph(FOOTER_TEXT, FOOTER_STYLE))

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=DOCUMENT_TITLE,
        author=DOCUMENT_AUTHOR,
        subject=subject,
        invariant=1,
    )
    try:
        doc.build(story)
    except Exception as exc:
        raise RenderError(f"Failed to lay out cover letter: {exc}") from exc

    content = buffer.getvalue()
    LOGGER.info("Rendered cover letter PDF (%d pages, %d bytes)", doc.page, len(content))
    return GeneratedDocument(content=content, title=DOCUMENT_TITLE, subject=subject, page_count=doc.page)
