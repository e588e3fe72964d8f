"""
pdfhub/services/conversion_service.py

Orchestrates one conversion request end to end:

    multipart fields
      └─ JobStore.create_job()            → job (pending)
           └─ JobStore.upload_blob()      → input URL
                └─ advance → processing
                     └─ ToolType.parse()  → dispatch
                          └─ Converter.convert() / download()
                               └─ JobStore.upload_blob()  → output URL
                                    └─ advance → completed | failed

Every step is awaited before the next one starts. The pipeline is not
transactional: a failure leaves the job in the last status written, and
nothing already uploaded is removed.

Both dependencies are constructor-injected; the application builds the
service once at startup with the configured credentials.
"""

from __future__ import annotations

import mimetypes
import time
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

from pdfhub.converter.base import ConversionOptions, Converter
from pdfhub.core.config import settings
from pdfhub.core.constants import DEFAULT_UPLOAD_FILENAME
from pdfhub.core.exceptions import (
    ConversionError,
    InputUploadError,
    InvalidRequestError,
    JobCreationError,
    JobUpdateError,
    OutputStorageError,
)
from pdfhub.core.logger import get_logger
from pdfhub.job_store.base import JobStore
from pdfhub.models.job_models import (
    ConversionJob,
    ConvertResponse,
    JobStatus,
    ensure_transition_allowed,
)
from pdfhub.models.tool_models import ToolType, get_download_filename

logger = get_logger(__name__)


class ConversionService:
    """
    Runs the conversion pipeline and answers job-status lookups.

    The service holds no per-request state; the only shared state is the
    job record, which lives in the store.
    """

    def __init__(
        self,
        store: JobStore,
        converter: Converter,
        uploads_bucket: str | None = None,
        converted_bucket: str | None = None,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._store = store
        self._converter = converter
        self._uploads_bucket = uploads_bucket or settings.uploads_bucket
        self._converted_bucket = converted_bucket or settings.converted_bucket
        self._max_upload_bytes = max_upload_bytes or settings.max_upload_mb * 1024 * 1024

    # ── Public API ─────────────────────────────────────────────────────────────

    async def convert(
        self,
        *,
        file_bytes: Optional[bytes],
        filename: Optional[str],
        content_type: Optional[str],
        tool_type: Optional[str],
        user_id: Optional[str],
        options: ConversionOptions | None = None,
    ) -> ConvertResponse:
        """
        Run the full pipeline for one uploaded file.

        Returns:
            ConvertResponse with the job id and the converted file's public URL.

        Raises:
            InvalidRequestError  : A required field is missing or invalid (no side effects).
            JobCreationError     : The job record could not be created.
            InputUploadError     : The input could not be stored (job stays pending).
            JobUpdateError       : A status write failed.
            UnsupportedToolError : ``tool_type`` is not a known tool (job stays processing).
            ConversionError      : The backend failed (job marked failed).
            OutputStorageError   : The output could not be stored (job marked failed).
        """
        options = options or ConversionOptions()
        self._validate(file_bytes, tool_type, user_id, options)

        name = PurePosixPath(filename or DEFAULT_UPLOAD_FILENAME).name or DEFAULT_UPLOAD_FILENAME

        # ── (a) create job ─────────────────────────────────────────────────────
        try:
            job = await self._store.create_job(user_id, tool_type)  # type: ignore[arg-type]
        except Exception as exc:
            logger.exception("Job creation failed for user %s: %s", user_id, exc)
            raise JobCreationError("Failed to create conversion job") from exc
        logger.info("Job %s created — tool=%s  file='%s'", job.id, tool_type, name)

        # ── (b) store input ────────────────────────────────────────────────────
        input_path = f"{user_id}/{_stamp()}-{name}"
        try:
            await self._store.upload_blob(
                self._uploads_bucket,
                input_path,
                file_bytes,  # type: ignore[arg-type]
                content_type or "application/octet-stream",
            )
        except Exception as exc:
            logger.exception("Job %s — input upload failed: %s", job.id, exc)
            raise InputUploadError("Failed to upload file") from exc
        input_url = self._store.public_url(self._uploads_bucket, input_path)

        # ── (c) pending → processing ───────────────────────────────────────────
        try:
            job = await self._advance(job, JobStatus.PROCESSING, input_file_url=input_url)
        except Exception as exc:
            logger.exception("Job %s — could not mark processing: %s", job.id, exc)
            await self._mark_failed(job, "Failed to update conversion job")
            raise JobUpdateError("Failed to update conversion job") from exc

        # ── (d) dispatch ───────────────────────────────────────────────────────
        tool = ToolType.parse(tool_type)  # type: ignore[arg-type]

        # ── (e) convert and store output ───────────────────────────────────────
        try:
            result = await self._converter.convert(tool, [input_url], options)
            output = await self._converter.download(result.task_id)
        except ConversionError as exc:
            logger.warning("Job %s — conversion failed: %s", job.id, exc)
            await self._mark_failed(job, str(exc))
            raise
        except Exception as exc:
            logger.exception("Job %s — unexpected conversion error: %s", job.id, exc)
            await self._mark_failed(job, "Conversion failed")
            raise ConversionError("Conversion failed") from exc

        output_name = get_download_filename(name, tool)
        output_path = f"{user_id}/{_stamp()}-converted-{output_name}"
        try:
            await self._store.upload_blob(
                self._converted_bucket,
                output_path,
                output,
                mimetypes.guess_type(output_name)[0] or "application/octet-stream",
            )
        except Exception as exc:
            logger.exception("Job %s — output upload failed: %s", job.id, exc)
            await self._mark_failed(job, "Failed to store converted file")
            raise OutputStorageError("Failed to store converted file") from exc
        output_url = self._store.public_url(self._converted_bucket, output_path)

        # ── (f) processing → completed ─────────────────────────────────────────
        try:
            job = await self._advance(job, JobStatus.COMPLETED, output_file_url=output_url)
        except Exception as exc:
            logger.exception("Job %s — could not mark completed: %s", job.id, exc)
            await self._mark_failed(job, "Failed to update conversion job")
            raise JobUpdateError("Failed to update conversion job") from exc

        logger.info("Job %s completed — %d byte(s) → '%s'", job.id, len(output), output_path)
        return ConvertResponse(job_id=job.id, download_url=output_url)

    async def get_job(self, job_id: Optional[str]) -> ConversionJob:
        """
        Return the current record for ``job_id``.

        Raises:
            InvalidRequestError : ``job_id`` is blank.
            JobStoreError       : Unknown id (JobNotFoundError) or lookup failure.
        """
        if not job_id or not job_id.strip():
            raise InvalidRequestError("Job ID required")
        return await self._store.get_job(job_id.strip())

    async def check_dependencies(self) -> Dict[str, bool]:
        """Probe both backends."""
        return {
            "supabase": await self._store.ping(),
            "ilovepdf": await self._converter.ping(),
        }

    # ── Internals ──────────────────────────────────────────────────────────────

    def _validate(
        self,
        file_bytes: Optional[bytes],
        tool_type: Optional[str],
        user_id: Optional[str],
        options: ConversionOptions,
    ) -> None:
        if file_bytes is None or not tool_type or not user_id:
            raise InvalidRequestError("Missing required fields")
        if len(file_bytes) > self._max_upload_bytes:
            raise InvalidRequestError(
                f"File size must be less than {self._max_upload_bytes // (1024 * 1024)}MB"
            )
        if tool_type == ToolType.PDF_PROTECTOR.value and not options.password:
            raise InvalidRequestError("A password is required to protect a PDF")

    async def _advance(self, job: ConversionJob, to_status: JobStatus, **changes: Any) -> ConversionJob:
        """Write ``to_status`` (plus ``changes``) only if the job is still in ``job.status``."""
        ensure_transition_allowed(job.status, to_status)
        changes["status"] = to_status.value
        return await self._store.update_job(job.id, changes, expected_status=job.status)

    async def _mark_failed(self, job: ConversionJob, message: str) -> None:
        """Record ``message`` on the job. A failure here is logged, never raised."""
        try:
            await self._advance(job, JobStatus.FAILED, error_message=message)
        except Exception as exc:  # noqa: BLE001
            logger.error("Job %s — could not record failure '%s': %s", job.id, message, exc)


def _stamp() -> int:
    """Milliseconds since the epoch, used to keep blob paths unique per user."""
    return int(time.time() * 1000)
