"""
Cover letter generation.

The word ceiling is an instruction to the model, not a guarantee: the returned
text is used as-is and the renderer paginates if it overflows one page.
"""

from __future__ import annotations

import logging

from data_models import JobDescription, PersonalInfo
from errors import SynthesisError

LOGGER = logging.getLogger(__name__)

TARGET_WORDS = 400
LETTER_TEMPERATURE = 0.7


def build_cover_letter_prompt(
    job_description: JobDescription, cv_text: str, personal_info: PersonalInfo
) -> str:
    """
    Build the cover letter prompt.

    Args:
        job_description: Resolved description or the not-found sentinel.
        cv_text: Full CV text.
        personal_info: Contact details shown to the model for the sign-off.

    Returns:
        Prompt text.
    """
    return f"""You are an expert career coach and professional writer.

Using the following job description and CV, write a tailored, professional cover letter in English.

Job Description:
{job_description.text}

CV:
{cv_text}

Personal Information (use this for the closing signature):
- Name: {personal_info.full_name}
- Email: {personal_info.email}
- Phone: {personal_info.phone}
- Address: {personal_info.address}

CRITICAL LENGTH CONSTRAINT: The cover letter MUST fit on a single A4 page. The header (name, contact info, date) takes about 40% of the page, so keep the body to about 300-{TARGET_WORDS} words.

FORMATTING: Plain text only. Do not use *, **, - or -- characters, bullet points, headings or any markdown. Separate paragraphs with a blank line.

The cover letter should be:
- Formal yet engaging
- Focused on the most relevant experiences and skills
- Structured in four parts: introduction, motivation, skills alignment, strong closing
- Confident in tone and adapted to the company

Write only the letter body, starting with the salutation. Do not repeat the name, contact details or date at the top; they are added separately."""


class CoverLetterSynthesizer:
    """Writes the letter body from the job description, CV and contact details."""

    def __init__(self, llm) -> None:
        """
        Args:
            llm: Object exposing ``async complete(prompt) -> str``, normally a
                client built with ``LETTER_TEMPERATURE``.
        """
        self._llm = llm

    async def synthesize(
        self, job_description: JobDescription, cv_text: str, personal_info: PersonalInfo
    ) -> str:
        if not job_description.found:
            LOGGER.warning("Synthesizing cover letter without a job description")
        prompt = build_cover_letter_prompt(job_description, cv_text, personal_info)
        try:
            text = await self._llm.complete(prompt)
        except Exception as exc:
            raise SynthesisError(f"Cover letter generation failed: {exc}") from exc

        text = (text or "").strip()
        if not text:
            raise SynthesisError("Empty cover letter response")

        words = len(text.split())
        if words > TARGET_WORDS:
            LOGGER.warning("Cover letter is %d words (target %d); keeping as generated", words, TARGET_WORDS)
        LOGGER.info("Cover letter text generated (%d words)", words)
        return text
