"""
Shared data models used across the application.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

JOB_DESCRIPTION_NOT_FOUND = "No job description found in the content."


@dataclass(frozen=True)
class ApplicantHint:
    """Name and email supplied by the applicant at submission time."""

    name: str
    email: str


@dataclass(frozen=True)
class JobApplicationRequest:
    """A queued request to produce a cover letter for one job posting."""

    job_id: str
    job_url: str
    cv_path: Path
    applicant: ApplicantHint

    def to_dict(self) -> Dict[str, str]:
        return {
            "job_id": self.job_id,
            "job_url": self.job_url,
            "cv_path": str(self.cv_path),
            "name": self.applicant.name,
            "email": self.applicant.email,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobApplicationRequest":
        """Rebuild a request serialized with ``to_dict``."""
        return cls(
            job_id=data["job_id"],
            job_url=data["job_url"],
            cv_path=Path(data["cv_path"]),
            applicant=ApplicantHint(name=data.get("name", ""), email=data.get("email", "")),
        )


@dataclass(frozen=True)
class PersonalInfo:
    """Contact details resolved from a CV. Unresolved fields are empty strings."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> Dict[str, str]:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
        }


@dataclass(frozen=True)
class RenderedPage:
    """Best-effort text representation of a rendered job posting page."""

    url: str
    title: str
    text: str
    selector: str


@dataclass(frozen=True)
class JobDescription:
    """Resolved job description, or the "not found" sentinel when found is False."""

    text: str
    found: bool = True
    title: str = ""
    error: Optional[str] = None

    @classmethod
    def not_found(cls, error: Optional[str] = None, title: str = "") -> "JobDescription":
        return cls(text=JOB_DESCRIPTION_NOT_FOUND, found=False, title=title, error=error)


@dataclass(frozen=True)
class GeneratedDocument:
    """Rendered cover letter PDF and its metadata."""

    content: bytes
    title: str
    subject: str
    page_count: int


@dataclass(frozen=True)
class AutomationOutcome:
    """Result of filling in the application form in a browser."""

    status: str
    fields_filled: List[str] = field(default_factory=list)
    submitted: bool = False
    error: Optional[str] = None


class PipelineState(str, Enum):
    """States a request moves through while being processed."""

    QUEUED = "queued"
    RESOLVING_DESCRIPTION = "resolving_description"
    RESOLVING_CV = "resolving_cv"
    EXTRACTING_INFO = "extracting_info"
    SYNTHESIZING_LETTER = "synthesizing_letter"
    RENDERING_DOCUMENT = "rendering_document"
    AUTOMATING = "automating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineEvent:
    """A single state transition of one pipeline run."""

    job_id: str
    state: PipelineState
    detail: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class PipelineFailure:
    """Stage at which a pipeline run stopped and why."""

    stage: PipelineState
    error_type: str
    message: str


@dataclass
class PipelineResult:
    """Terminal outcome of one pipeline run, handed back to the queue."""

    job_id: str
    status: PipelineState
    cover_letter: str = ""
    document: Optional[GeneratedDocument] = None
    automation: Optional[AutomationOutcome] = None
    job_description: Optional[JobDescription] = None
    personal_info: Optional[PersonalInfo] = None
    failure: Optional[PipelineFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.status is PipelineState.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view of the result. Document bytes are left out."""
        payload: Dict[str, Any] = {
            "job_id": self.job_id,
            "status": self.status.value,
            "cover_letter": self.cover_letter,
        }
        if self.job_description is not None:
            payload["job_description"] = {
                "found": self.job_description.found,
                "title": self.job_description.title,
                "text": self.job_description.text[:1000],
                "error": self.job_description.error,
            }
        if self.personal_info is not None:
            payload["personal_info"] = self.personal_info.to_dict()
        if self.document is not None:
            payload["document"] = {
                "title": self.document.title,
                "subject": self.document.subject,
                "page_count": self.document.page_count,
                "size_bytes": len(self.document.content),
            }
        if self.automation is not None:
            payload["automation"] = asdict(self.automation)
        if self.failure is not None:
            payload["failure"] = {
                "stage": self.failure.stage.value,
                "error_type": self.failure.error_type,
                "message": self.failure.message,
            }
        return payload
