"""
Utilities for loading the candidate's CV document as plain text.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from errors import ParseError

LOGGER = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}
SUPPORTED_SUFFIXES = TEXT_SUFFIXES | {".pdf"}


def _pdf_to_text(path: Path) -> str:
    reader = PdfReader(str(path))
    pages = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        if page_text.strip():
            pages.append(page_text)
    return "\n".join(pages)


def parse_cv_text(path: Path) -> str:
    """
    Extract the text of a CV document.

    Args:
        path: Location of a PDF or plain-text CV.

    Returns:
        Extracted text with line structure preserved.

    Raises:
        ParseError: If the file is missing, unsupported, unreadable or empty.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ParseError(f"Unsupported CV format '{suffix or path.name}'")

    try:
        if suffix in TEXT_SUFFIXES:
            text = path.read_text(encoding="utf-8", errors="replace")
        else:
            text = _pdf_to_text(path)
    except FileNotFoundError:
        raise ParseError(f"CV file not found: {path}") from None
    except (OSError, PyPdfError, ValueError) as exc:
        raise ParseError(f"Could not parse CV {path.name}: {exc}") from exc

    if not text.strip():
        raise ParseError(f"No text could be extracted from {path.name}")

    LOGGER.info("Extracted %d characters from CV %s", len(text), path.name)
    return text
