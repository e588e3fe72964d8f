"""
pdfhub/models/job_models.py

The ConversionJob record, its status lifecycle, and the response DTOs
of the /convert endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pdfhub.core.exceptions import InvalidTransitionError


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Forward-only. pending → failed covers a failure while writing `processing`.
_ALLOWED: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def ensure_transition_allowed(from_status: JobStatus, to_status: JobStatus) -> None:
    """Raise InvalidTransitionError unless ``from_status → to_status`` moves forward."""
    if to_status not in _ALLOWED[from_status]:
        raise InvalidTransitionError(from_status.value, to_status.value)


def utc_now() -> str:
    """ISO-8601 UTC timestamp as stored in the jobs table."""
    return datetime.now(timezone.utc).isoformat()


class ConversionJob(BaseModel):
    """
    One row of the jobs table.

    ``tool_type`` is kept as the raw tag the client sent: the record is
    created before the tag is dispatched, so an unsupported tag can be stored.
    Unknown columns returned by the store are preserved.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    tool_type: str
    status: JobStatus
    input_file_url: str = ""
    output_file_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        # PostgREST returns integer or uuid primary keys depending on the schema.
        return str(v) if v is not None else v

    @model_validator(mode="after")
    def terminal_fields_match_status(self) -> "ConversionJob":
        if bool(self.output_file_url) != (self.status is JobStatus.COMPLETED):
            raise ValueError("output_file_url must be set if and only if status is 'completed'")
        if bool(self.error_message) != (self.status is JobStatus.FAILED):
            raise ValueError("error_message must be set if and only if status is 'failed'")
        return self


# ── Response DTOs ──────────────────────────────────────────────────────────────

class ConvertResponse(BaseModel):
    """
    Successful response for POST /convert.

        { "success": true, "jobId": "42", "downloadUrl": "https://…/report.docx" }
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    job_id: str = Field(alias="jobId")
    download_url: str = Field(alias="downloadUrl")


class JobResponse(BaseModel):
    """Successful response for GET /convert?jobId=… — ``{ "job": { … } }``."""

    job: ConversionJob
