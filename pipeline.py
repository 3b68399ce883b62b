"""
Worker pipeline turning one queued application request into a cover letter.

Stages run strictly in order: job description, CV text, personal info, letter
text, PDF, and optionally form automation. Any exception raised by a stage
stops the run and is recorded as a failure; the temporary CV file is removed
exactly once on every exit path, including cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from data_models import (
    AutomationOutcome,
    JobApplicationRequest,
    PipelineEvent,
    PipelineFailure,
    PipelineResult,
    PipelineState,
)
from pdf_renderer import render_cover_letter
from resume_loader import parse_cv_text

LOGGER = logging.getLogger(__name__)

EventListener = Callable[[PipelineEvent], None]


def remove_cv_file(path: Path) -> None:
    """Delete the temporary CV upload; a file that is already gone is fine."""
    try:
        Path(path).unlink(missing_ok=True)
        LOGGER.debug("Removed temporary CV %s", path)
    except OSError as exc:
        LOGGER.error("Failed to remove temporary CV %s: %s", path, exc)


@asynccontextmanager
async def claimed_cv(path: Path, remove: Callable[[Path], None] = remove_cv_file) -> AsyncIterator[Path]:
    """Hold the CV file for the duration of a run and release it afterwards."""
    try:
        yield path
    finally:
        remove(path)


class PipelineOrchestrator:
    """Coordinates the stages of a single application request."""

    def __init__(
        self,
        description_resolver,
        personal_info_resolver,
        synthesizer,
        automator=None,
        cv_parser: Callable[[Path], str] = parse_cv_text,
        document_renderer=render_cover_letter,
        remove_cv: Callable[[Path], None] = remove_cv_file,
        listener: Optional[EventListener] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            description_resolver: JobDescriptionResolver (async resolve(url)).
            personal_info_resolver: PersonalInfoResolver (async resolve(cv_text)).
            synthesizer: CoverLetterSynthesizer (async synthesize(...)).
            automator: Optional ApplicationAutomator; None skips automation.
            cv_parser: Blocking CV document to text function.
            document_renderer: Blocking cover letter to PDF function.
            remove_cv: Cleanup callable for the temporary CV file.
            listener: Optional callback receiving every PipelineEvent.
        """
        self._description_resolver = description_resolver
        self._personal_info_resolver = personal_info_resolver
        self._synthesizer = synthesizer
        self._automator = automator
        self._cv_parser = cv_parser
        self._document_renderer = document_renderer
        self._remove_cv = remove_cv
        self._listener = listener

    def _emit(self, job_id: str, state: PipelineState, detail: str = "") -> None:
        LOGGER.info("[%s] %s%s", job_id, state.value, f": {detail}" if detail else "")
        if self._listener is None:
            return
        try:
            self._listener(PipelineEvent(job_id=job_id, state=state, detail=detail))
        except Exception as exc:
            LOGGER.warning("Pipeline event listener failed: %s", exc)

    async def _automate(self, url: str, cover_letter: str, cv_path: Path, personal_info) -> AutomationOutcome:
        try:
            return await asyncio.to_thread(self._automator.automate, url, cover_letter, cv_path, personal_info)
        except Exception as exc:
            LOGGER.exception("Application automation crashed for %s", url)
            return AutomationOutcome(status="failed", error=f"{type(exc).__name__}: {exc}")

    async def run(self, request: JobApplicationRequest) -> PipelineResult:
        """
        Process one request end to end.

        Args:
            request: The claimed application request.

        Returns:
            PipelineResult with status COMPLETED or FAILED.
        """
        job_id = request.job_id
        result = PipelineResult(job_id=job_id, status=PipelineState.QUEUED)
        stage = PipelineState.QUEUED
        self._emit(job_id, stage, request.job_url)

        async with claimed_cv(request.cv_path, self._remove_cv) as cv_path:
            try:
                stage = PipelineState.RESOLVING_DESCRIPTION
                self._emit(job_id, stage)
                description = await self._description_resolver.resolve(request.job_url)
                result.job_description = description
                if not description.found:
                    self._emit(job_id, stage, "no job description found, continuing")

                stage = PipelineState.RESOLVING_CV
                self._emit(job_id, stage)
                cv_text = await asyncio.to_thread(self._cv_parser, cv_path)

                stage = PipelineState.EXTRACTING_INFO
                self._emit(job_id, stage)
                personal_info = await self._personal_info_resolver.resolve(cv_text)
                result.personal_info = personal_info

                stage = PipelineState.SYNTHESIZING_LETTER
                self._emit(job_id, stage)
                cover_letter = await self._synthesizer.synthesize(description, cv_text, personal_info)
                result.cover_letter = cover_letter

                stage = PipelineState.RENDERING_DOCUMENT
                self._emit(job_id, stage)
                result.document = await asyncio.to_thread(
                    self._document_renderer, cover_letter, personal_info, description.title or None
                )

                if self._automator is not None:
                    stage = PipelineState.AUTOMATING
                    self._emit(job_id, stage)
                    result.automation = await self._automate(request.job_url, cover_letter, cv_path, personal_info)
            except Exception as exc:
                LOGGER.exception("[%s] Pipeline failed while %s", job_id, stage.value)
                result.status = PipelineState.FAILED
                result.failure = PipelineFailure(
                    stage=stage, error_type=type(exc).__name__, message=str(exc)
                )
                self._emit(job_id, PipelineState.FAILED, f"{stage.value}: {exc}")
                return result

        result.status = PipelineState.COMPLETED
        self._emit(job_id, PipelineState.COMPLETED)
        return result
