"""
pdfhub/client/upload_widget.py

Client-side upload-and-poll widget.

Drives one conversion against the /convert API as a small state machine:

    idle → uploading → converting → completed | failed
                                    completed → downloading → completed

Status polling runs as an explicit asyncio task with an attempt counter,
so it can be cancelled (``cancel()`` or leaving ``async with``) instead of
being left as a dangling timer. Cancelling stops the polling and returns
the widget to idle; the server-side conversion is never cancelled.

Failures are never raised to the caller: they land in ``error`` and are
passed to the optional ``on_error`` callback, as a UI component would
surface them.
"""

from __future__ import annotations

import asyncio
import contextlib
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx

from pdfhub.client.download import download_file
from pdfhub.core.constants import MAX_UPLOAD_BYTES, POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS
from pdfhub.core.exceptions import DownloadError, FileValidationError
from pdfhub.core.logger import get_logger
from pdfhub.models.job_models import JobStatus
from pdfhub.models.tool_models import ToolType, get_allowed_file_types, get_download_filename

logger = get_logger(__name__)


class WidgetState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    CONVERTING = "converting"
    COMPLETED = "completed"
    FAILED = "failed"
    DOWNLOADING = "downloading"


_BUSY = (WidgetState.UPLOADING, WidgetState.CONVERTING, WidgetState.DOWNLOADING)


class UploadWidget:
    """
    One upload widget bound to a single tool.

    Args:
        tool_type     : Tool the widget converts with.
        client        : HTTP client whose ``base_url`` points at the API.
        user_id       : Sent as ``userId``; ``"anonymous"`` when not signed in.
        poll_interval : Seconds between status checks.
        max_attempts  : Non-terminal status checks before giving up.
        on_complete   : Called with the download URL when the job completes.
        on_error      : Called with a human-readable message on any failure.
    """

    def __init__(
        self,
        tool_type: ToolType,
        client: httpx.AsyncClient,
        *,
        user_id: str = "anonymous",
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        max_file_size: int = MAX_UPLOAD_BYTES,
        on_complete: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.tool_type = tool_type
        self._client = client
        self._user_id = user_id
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._max_file_size = max_file_size
        self._on_complete = on_complete
        self._on_error = on_error

        self.state = WidgetState.IDLE
        self.error: Optional[str] = None
        self.job_id: Optional[str] = None
        self.download_url: Optional[str] = None
        self.original_filename: str = ""
        self.progress: float = 0.0
        self.attempts: int = 0
        self._poll_task: Optional[asyncio.Task] = None
        # Bumped by cancel(); an upload from an older generation never starts polling.
        self._generation = 0

    async def __aenter__(self) -> "UploadWidget":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.cancel()

    # ── File selection ─────────────────────────────────────────────────────────

    @property
    def allowed_file_types(self) -> List[str]:
        return get_allowed_file_types(self.tool_type)

    def validate_file(self, content_type: str, size: int) -> None:
        """Raise FileValidationError if the file's type or size is not accepted."""
        allowed = self.allowed_file_types
        if content_type not in allowed:
            raise FileValidationError(
                f"Please select a valid file type. Allowed: {', '.join(allowed)}"
            )
        if size > self._max_file_size:
            raise FileValidationError(
                f"File size must be less than {self._max_file_size // (1024 * 1024)}MB"
            )

    async def select_file(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        *,
        password: Optional[str] = None,
        ranges: Optional[str] = None,
    ) -> bool:
        """
        Validate the file, upload it, and start polling.

        Returns:
            True when the upload was accepted and polling started. False when
            the file was rejected locally (state stays unchanged, no request
            is made) or the upload failed (state becomes ``failed``).

        Raises:
            RuntimeError: If a conversion or download is already in progress.
        """
        if self.state in _BUSY:
            raise RuntimeError(f"UploadWidget is busy ({self.state.value}).")

        try:
            self.validate_file(content_type, len(content))
        except FileValidationError as exc:
            self._report(str(exc))
            return False

        self._reset()
        self.original_filename = filename
        self.state = WidgetState.UPLOADING
        generation = self._generation

        job_id = await self._upload(content, filename, content_type, password, ranges)
        if generation != self._generation:
            self.job_id = job_id
            if self.state is WidgetState.UPLOADING:
                self.state = WidgetState.IDLE
            logger.info("Upload of '%s' finished after cancel; job %s is not polled.", filename, job_id)
            return False
        if job_id is None:
            return False

        self.job_id = job_id
        self.state = WidgetState.CONVERTING
        self._poll_task = asyncio.create_task(self._poll(job_id))
        return True

    # ── Polling control ────────────────────────────────────────────────────────

    async def wait(self) -> WidgetState:
        """Wait for the current polling task, if any, and return the resulting state."""
        if self._poll_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
        return self.state

    async def cancel(self) -> None:
        """
        Stop polling and return to ``idle``. The job keeps running on the server.

        Called while an upload is in flight, it prevents that upload from
        starting a polling task once it returns.
        """
        self._generation += 1
        task, self._poll_task = self._poll_task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        if self.state is WidgetState.CONVERTING:
            self.state = WidgetState.IDLE
        logger.info("Stopped polling job %s.", self.job_id)

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ── Download ───────────────────────────────────────────────────────────────

    @property
    def download_filename(self) -> str:
        return get_download_filename(self.original_filename, self.tool_type)

    async def download(self, dest_dir: str | Path) -> Optional[Path]:
        """
        Save the converted file into ``dest_dir`` under its suggested name.

        Returns the written path, or None when nothing was saved.
        """
        if self.state is not WidgetState.COMPLETED or not self.download_url:
            return None

        self.state = WidgetState.DOWNLOADING
        try:
            return await download_file(self._client, self.download_url, dest_dir, self.download_filename)
        except DownloadError as exc:
            self._report(str(exc))
            return None
        finally:
            self.state = WidgetState.COMPLETED

    # ── Internals ──────────────────────────────────────────────────────────────

    def _reset(self) -> None:
        self.error = None
        self.job_id = None
        self.download_url = None
        self.progress = 0.0
        self.attempts = 0

    async def _upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        password: Optional[str],
        ranges: Optional[str],
    ) -> Optional[str]:
        """POST the file; return the job id, or fail the widget and return None."""
        data: Dict[str, str] = {"toolType": self.tool_type.value, "userId": self._user_id}
        if password:
            data["password"] = password
        if ranges:
            data["ranges"] = ranges

        try:
            resp = await self._client.post(
                "/convert",
                data=data,
                files={"file": (filename, content, content_type)},
            )
        except httpx.HTTPError as exc:
            logger.warning("Upload of '%s' failed: %s", filename, exc)
            self._fail("Upload failed")
            return None

        body = _json_or_empty(resp)
        if not resp.is_success:
            self._fail(str(body.get("error") or "Conversion failed"))
            return None

        job_id = body.get("jobId")
        if not job_id:
            self._fail("Upload failed")
            return None
        return str(job_id)

    async def _poll(self, job_id: str) -> None:
        while True:
            try:
                resp = await self._client.get("/convert", params={"jobId": job_id})
                job = resp.json()["job"]
                status = job["status"]
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Status check for job %s failed: %s", job_id, exc)
                self._fail("Failed to check conversion status")
                return

            if status == JobStatus.COMPLETED.value:
                self.download_url = job.get("output_file_url")
                self.progress = 100.0
                self.state = WidgetState.COMPLETED
                logger.info("Job %s completed.", job_id)
                if self._on_complete is not None and self.download_url:
                    self._on_complete(self.download_url)
                return

            if status == JobStatus.FAILED.value:
                self._fail(job.get("error_message") or "Conversion failed")
                return

            self.attempts += 1
            if self.attempts >= self._max_attempts:
                self._fail("Conversion timed out")
                return
            self.progress = self.attempts / self._max_attempts * 100
            await asyncio.sleep(self._poll_interval)

    def _fail(self, message: str) -> None:
        self.state = WidgetState.FAILED
        self._report(message)

    def _report(self, message: str) -> None:
        self.error = message
        logger.info("UploadWidget(%s): %s", self.tool_type.value, message)
        if self._on_error is not None:
            self._on_error(message)


def _json_or_empty(resp: httpx.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
