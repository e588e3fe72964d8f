"""
pdfhub/core/exceptions.py

Custom exception hierarchy for the application.

Raising typed exceptions from services lets controllers catch specific
cases and return the correct HTTP status code without leaking internals.
The message of every pipeline error is safe to show to the end user.
"""


class AppBaseException(Exception):
    """Root exception — catch-all for any application-level error."""


# ── Request validation ─────────────────────────────────────────────────────────

class InvalidRequestError(AppBaseException):
    """Raised when a conversion request is missing fields or carries bad values."""


class UnsupportedToolError(AppBaseException):
    """Raised when the requested tool type is not one of the known operations."""


# ── Job lifecycle ──────────────────────────────────────────────────────────────

class InvalidTransitionError(AppBaseException):
    """Raised when a status write would move a job backwards or out of a terminal state."""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"invalid transition: {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status


# ── Backend (dependency) errors ────────────────────────────────────────────────

class JobStoreError(AppBaseException):
    """Raised when a read or write against the jobs table fails."""


class JobNotFoundError(JobStoreError):
    """Raised when no job record exists for the given identifier."""


class BlobStorageError(AppBaseException):
    """Raised when uploading or fetching a blob fails."""


# ── Conversion pipeline errors ─────────────────────────────────────────────────

class ConversionPipelineError(AppBaseException):
    """Base for failures of a step of the conversion pipeline (HTTP 500)."""


class JobCreationError(ConversionPipelineError):
    """Raised when the initial job record could not be created."""


class InputUploadError(ConversionPipelineError):
    """Raised when the uploaded input file could not be stored."""


class JobUpdateError(ConversionPipelineError):
    """Raised when the job could not be advanced to a new status."""


class ConversionError(ConversionPipelineError):
    """Raised when the conversion backend rejects or fails a task."""


class OutputStorageError(ConversionPipelineError):
    """Raised when the converted file could not be stored."""


# ── Client-side (upload widget) errors ─────────────────────────────────────────

class FileValidationError(AppBaseException):
    """Raised when a selected file fails the local type or size checks."""


class DownloadError(AppBaseException):
    """Raised when a converted file cannot be fetched or saved."""
