"""
Resolve structured contact details from CV text.

The LLM is asked for a JSON object first; anything it returns that is not a
JSON object (or an LLM failure) falls back to the pattern-based extractor.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from data_models import PersonalInfo
from field_heuristics import extract_personal_info
from llm_handler import extract_json_object

LOGGER = logging.getLogger(__name__)

CV_PROMPT_LIMIT = 4000

# PersonalInfo attribute -> JSON key requested from the model
FIELD_KEYS = {
    "first_name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "phone": "phone",
    "address": "address",
}


def build_personal_info_prompt(cv_text: str) -> str:
    """Build the extraction prompt for the first CV_PROMPT_LIMIT characters."""
    return f"""You are an expert at extracting personal information from CV/resume text.

From the following CV text, extract the following information:
- First Name
- Last Name
- Email address
- Phone number (if available)
- Address (if available)

Return the information in JSON format with these exact keys: firstName, lastName, email, phone, address.
If any information is not found, use an empty string for that field.
Respond with ONLY the JSON.

CV Text:
{cv_text[:CV_PROMPT_LIMIT]}"""


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def parse_personal_info_response(text: str) -> Optional[PersonalInfo]:
    """
    Turn an LLM response into PersonalInfo.

    Args:
        text: Raw model output.

    Returns:
        PersonalInfo projected from the JSON object (missing keys become empty
        strings), or None if the response does not contain a JSON object.
    """
    data = extract_json_object(text)
    if not isinstance(data, dict):
        return None
    return PersonalInfo(
        **{attr: _as_text(data.get(key)) for attr, key in FIELD_KEYS.items()}
    )


class PersonalInfoResolver:
    """Extracts PersonalInfo from CV text via the LLM with a heuristic fallback."""

    def __init__(self, llm) -> None:
        """
        Args:
            llm: Object exposing ``async complete(prompt) -> str``.
        """
        self._llm = llm

    async def resolve(self, cv_text: str) -> PersonalInfo:
        try:
            response = await self._llm.complete(build_personal_info_prompt(cv_text))
        except Exception as exc:
            LOGGER.warning("Personal info extraction via LLM failed (%s); using pattern fallback", exc)
            return extract_personal_info(cv_text)

        info = parse_personal_info_response(response)
        if info is None:
            LOGGER.warning("Could not parse LLM response as JSON, using pattern fallback")
            return extract_personal_info(cv_text)

        LOGGER.info("Personal info extracted via LLM for %s", info.full_name or "<unnamed>")
        return info
