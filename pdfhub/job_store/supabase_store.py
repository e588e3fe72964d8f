"""
pdfhub/job_store/supabase_store.py

Supabase implementation of the JobStore interface.

Rows go through the PostgREST API (``/rest/v1``), blobs through the
Storage API (``/storage/v1``). All backend-specific details are fully
contained here — the rest of the application never builds Supabase URLs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pdfhub.core.config import settings
from pdfhub.core.exceptions import BlobStorageError, JobNotFoundError, JobStoreError
from pdfhub.core.logger import get_logger
from pdfhub.job_store.base import JobStore
from pdfhub.models.job_models import ConversionJob, JobStatus, utc_now

logger = get_logger(__name__)


class SupabaseJobStore(JobStore):
    """
    JobStore backed by a Supabase project.

    One ``httpx.AsyncClient`` is opened on construction and reused for the
    lifetime of the object; call ``aclose()`` on shutdown.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        table: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            url       : Project URL. Defaults to ``settings.supabase_url``.
            api_key   : Service or anon key. Defaults to ``settings.supabase_key``.
            table     : Jobs table name. Defaults to ``settings.jobs_table``.
            transport : Optional httpx transport (tests pass a MockTransport).
        """
        self._url = (url or settings.supabase_url).rstrip("/")
        self._table = table or settings.jobs_table
        key = api_key if api_key is not None else settings.supabase_key

        self._client = httpx.AsyncClient(
            base_url=self._url,
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
            transport=transport,
            timeout=settings.http_timeout_seconds,
        )
        logger.info("SupabaseJobStore ready — url=%s  table=%s", self._url, self._table)

    # ── Jobs table ─────────────────────────────────────────────────────────────

    @property
    def _rows_path(self) -> str:
        return f"/rest/v1/{self._table}"

    async def create_job(self, user_id: str, tool_type: str) -> ConversionJob:
        now = utc_now()
        row = {
            "user_id": user_id,
            "tool_type": tool_type,
            "status": JobStatus.PENDING.value,
            "input_file_url": "",
            "created_at": now,
            "updated_at": now,
        }
        try:
            resp = await self._client.post(
                self._rows_path,
                json=row,
                headers={"Prefer": "return=representation"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise JobStoreError(f"insert into '{self._table}' failed: {exc}") from exc

        job = self._single_row(resp, what="insert")
        logger.debug("Created job %s for user %s.", job.id, user_id)
        return job

    async def update_job(
        self,
        job_id: str,
        changes: Dict[str, Any],
        expected_status: Optional[JobStatus] = None,
    ) -> ConversionJob:
        params = {"id": f"eq.{job_id}"}
        if expected_status is not None:
            params["status"] = f"eq.{expected_status.value}"

        body = dict(changes)
        body["updated_at"] = utc_now()
        try:
            resp = await self._client.patch(
                self._rows_path,
                params=params,
                json=body,
                headers={"Prefer": "return=representation"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise JobStoreError(f"update of job {job_id} failed: {exc}") from exc

        return self._single_row(resp, what=f"update of job {job_id}")

    async def get_job(self, job_id: str) -> ConversionJob:
        try:
            resp = await self._client.get(
                self._rows_path,
                params={"id": f"eq.{job_id}", "select": "*"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise JobStoreError(f"lookup of job {job_id} failed: {exc}") from exc

        return self._single_row(resp, what=f"lookup of job {job_id}")

    def _single_row(self, resp: httpx.Response, what: str) -> ConversionJob:
        """Parse a PostgREST representation that must contain exactly one row."""
        try:
            rows: List[Dict[str, Any]] = resp.json()
        except ValueError as exc:
            raise JobStoreError(f"{what}: response is not JSON") from exc

        if not rows:
            raise JobNotFoundError(f"{what}: no matching job")
        try:
            return ConversionJob.model_validate(rows[0])
        except ValidationError as exc:
            raise JobStoreError(f"{what}: malformed job record: {exc}") from exc

    # ── Blobs ──────────────────────────────────────────────────────────────────

    @staticmethod
    def _object_path(bucket: str, path: str) -> str:
        return f"{quote(bucket)}/{quote(path)}"

    async def upload_blob(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        try:
            resp = await self._client.post(
                f"/storage/v1/object/{self._object_path(bucket, path)}",
                content=data,
                headers={"Content-Type": content_type, "x-upsert": "false"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise BlobStorageError(f"upload to '{bucket}/{path}' failed: {exc}") from exc

        logger.debug("Uploaded %d byte(s) to '%s/%s'.", len(data), bucket, path)

    async def fetch_blob(self, bucket: str, path: str) -> bytes:
        try:
            resp = await self._client.get(f"/storage/v1/object/{self._object_path(bucket, path)}")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise BlobStorageError(f"fetch of '{bucket}/{path}' failed: {exc}") from exc
        return resp.content

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._url}/storage/v1/object/public/{self._object_path(bucket, path)}"

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        try:
            resp = await self._client.get(self._rows_path, params={"select": "id", "limit": "1"})
        except httpx.HTTPError as exc:
            logger.warning("Supabase unreachable: %s", exc)
            return False
        return resp.is_success

    async def aclose(self) -> None:
        await self._client.aclose()
