"""
Tests for submission validation and enqueueing.
"""

import pytest

from errors import ValidationError
from intake import ApplicationIntake, validate_application
from job_queue import JobQueue

INFO = {"name": "Jane Doe", "email": "jane.doe@example.com"}


@pytest.mark.parametrize("url", ["not a url", "ftp://jobs.example.com/1", "https://", 42])
def test_invalid_urls_are_rejected(url, cv_file):
    with pytest.raises(ValidationError):
        validate_application(url, INFO, cv_file)


@pytest.mark.parametrize("info", [None, {"name": "Jane"}, {"name": "Jane", "email": 3}, "Jane"])
def test_invalid_info_is_rejected(info, cv_file):
    with pytest.raises(ValidationError):
        validate_application("https://jobs.example.com/1", info, cv_file)


def test_missing_cv_is_rejected(tmp_path):
    with pytest.raises(ValidationError, match="CV required"):
        validate_application("https://jobs.example.com/1", INFO, None)
    with pytest.raises(ValidationError, match="not found"):
        validate_application("https://jobs.example.com/1", INFO, tmp_path / "missing.pdf")


def test_unsupported_cv_format_is_rejected(tmp_path):
    cv = tmp_path / "cv.docx"
    cv.write_bytes(b"PK")

    with pytest.raises(ValidationError, match="Unsupported CV format"):
        validate_application("https://jobs.example.com/1", INFO, cv)


@pytest.mark.asyncio
async def test_submit_stores_private_copy_and_enqueues(tmp_path, cv_file, fake_redis):
    queue = JobQueue(fake_redis)
    intake = ApplicationIntake(queue, tmp_path / "uploads")

    job_id = await intake.submit(" https://jobs.example.com/1 ", INFO, cv_file)

    job = await queue.claim()
    assert job.job_id == job_id
    assert job.request.job_url == "https://jobs.example.com/1"
    assert job.request.applicant.email == "jane.doe@example.com"
    assert job.request.cv_path.parent == (tmp_path / "uploads").resolve()
    assert job.request.cv_path.suffix == ".txt"
    assert job.request.cv_path.read_text(encoding="utf-8") == cv_file.read_text(encoding="utf-8")
    assert cv_file.exists()


@pytest.mark.asyncio
async def test_rejected_submission_is_not_queued(tmp_path, fake_redis):
    queue = JobQueue(fake_redis)
    intake = ApplicationIntake(queue, tmp_path / "uploads")

    with pytest.raises(ValidationError):
        await intake.submit("https://jobs.example.com/1", INFO, tmp_path / "missing.pdf")
    assert await queue.pending_count() == 0
