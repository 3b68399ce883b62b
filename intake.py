"""
Accepting application submissions and placing them on the job queue.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import Any, Mapping, Tuple
from urllib.parse import urlparse

from data_models import ApplicantHint, JobApplicationRequest
from errors import ValidationError
from resume_loader import SUPPORTED_SUFFIXES

LOGGER = logging.getLogger(__name__)


def validate_application(url: Any, info: Any, cv_path: Any) -> Tuple[str, ApplicantHint, Path]:
    """
    Check the shape of a submission.

    Args:
        url: Job posting URL.
        info: Mapping with "name" and "email" strings.
        cv_path: Path of the uploaded CV.

    Returns:
        Tuple of (url, applicant hint, CV path).

    Raises:
        ValidationError: If any part of the submission is malformed.
    """
    if not isinstance(url, str):
        raise ValidationError("url must be a string")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid job URL: {url!r}")

    if not isinstance(info, Mapping):
        raise ValidationError("info must be an object with name and email")
    for key in ("name", "email"):
        if not isinstance(info.get(key), str):
            raise ValidationError(f"info.{key} must be a string")

    if not cv_path:
        raise ValidationError("CV required")
    cv_path = Path(cv_path)
    if not cv_path.is_file():
        raise ValidationError(f"CV file not found: {cv_path}")
    if cv_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ValidationError(
            f"Unsupported CV format '{cv_path.suffix}'; expected one of {', '.join(sorted(SUPPORTED_SUFFIXES))}"
        )

    return url.strip(), ApplicantHint(name=info["name"], email=info["email"]), cv_path


class ApplicationIntake:
    """Validates submissions, stores a private copy of the CV and enqueues the job."""

    def __init__(self, queue, upload_dir: Path) -> None:
        self._queue = queue
        self._upload_dir = Path(upload_dir)
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    async def submit(self, url: Any, info: Any, cv_path: Any) -> str:
        """
        Accept one submission.

        Returns:
            Job id of the queued request.

        Raises:
            ValidationError: If the submission is malformed.
        """
        url, applicant, source = validate_application(url, info, cv_path)

        job_id = f"job_{uuid.uuid4().hex[:12]}"
        stored = (self._upload_dir / f"{job_id}{source.suffix.lower()}").resolve()
        shutil.copyfile(source, stored)

        request = JobApplicationRequest(job_id=job_id, job_url=url, cv_path=stored, applicant=applicant)
        await self._queue.enqueue(request)
        LOGGER.info("Accepted application %s for %s", job_id, url)
        return job_id
