"""
Pattern-based extraction of contact details from raw CV text.

Used when the LLM cannot be reached or does not return usable JSON. The rules
are deliberately simple and deterministic; address extraction is not attempted.
"""

from __future__ import annotations

import re
from typing import List, Tuple

from data_models import PersonalInfo

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# Accepts country codes, parentheses and "-", "." or whitespace separators,
# e.g. "+1 555-123-4567", "(555) 123 4567", "+33 6 12 34 56 78".
PHONE_PATTERN = re.compile(
    r"(\+?\d{1,4}[-.\s]?)?\(?(\d{1,4})\)?[-.\s]?(\d{1,4})[-.\s]?(\d{1,4})"
    r"[-.\s]?(\d{1,4})?[-.\s]?(\d{1,4})?\b"
)

NAME_SCAN_LINES = 15


def _normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def find_email(text: str) -> str:
    """Return the first email address in the text, or an empty string."""
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else ""


def find_phone(text: str) -> str:
    """Return the first phone-like sequence with whitespace collapsed."""
    match = PHONE_PATTERN.search(text)
    return _normalize_whitespace(match.group(0)) if match else ""


def _name_tokens(line: str) -> List[str]:
    cleaned = PHONE_PATTERN.sub("", line)
    cleaned = EMAIL_PATTERN.sub("", cleaned)
    return [token for token in cleaned.split() if len(token) > 1]


def find_name(text: str) -> Tuple[str, str]:
    """
    Guess the candidate's first and last name from the top of the CV.

    Args:
        text: Raw CV text.

    Returns:
        Tuple of (first name, last name); either may be empty.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    first_name = ""
    last_name = ""

    for line in lines[:NAME_SCAN_LINES]:
        tokens = _name_tokens(line)
        if len(tokens) >= 2:
            first_name = tokens[0]
            last_name = re.sub(r"[^\w\s-]", "", " ".join(tokens[1:])).strip()
            break
        if len(tokens) == 1 and not first_name:
            first_name = tokens[0]

    # "Jane+33..." style lines: keep only what precedes the plus sign.
    if not last_name and "+" in first_name:
        first_name = first_name.split("+")[0].strip()

    return first_name, last_name


def extract_personal_info(text: str) -> PersonalInfo:
    """
    Extract contact details from CV text without any external calls.

    Args:
        text: Raw CV text.

    Returns:
        PersonalInfo with every unresolved field set to an empty string.
    """
    if not text:
        return PersonalInfo()
    first_name, last_name = find_name(text)
    return PersonalInfo(
        first_name=first_name,
        last_name=last_name,
        email=find_email(text),
        phone=find_phone(text),
        address="",
    )
