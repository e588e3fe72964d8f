"""
tests/conftest.py

Shared pytest fixtures available to all test modules.

Fixtures defined here are auto-discovered by pytest — no import needed.
The two backends are replaced with in-memory fakes so no test touches
Supabase or iLovePDF.
"""

import io
import os
from typing import Any, Dict, List, Optional, Set, Tuple

# Settings are read at import time; the app's lifespan needs a conversion key.
os.environ.setdefault("ILOVEPDF_API_KEY", "test-ilovepdf-key")

import pytest
from fastapi.testclient import TestClient

from pdfhub.api.convert_controller import get_conversion_service
from pdfhub.converter.base import ConversionOptions, ConversionResult, Converter
from pdfhub.core.exceptions import BlobStorageError, JobNotFoundError, JobStoreError
from pdfhub.job_store.base import JobStore
from pdfhub.main import app
from pdfhub.models.job_models import ConversionJob, JobStatus, utc_now
from pdfhub.models.tool_models import ToolType
from pdfhub.services.conversion_service import ConversionService


# ── In-memory backends ─────────────────────────────────────────────────────────

class InMemoryJobStore(JobStore):
    """
    JobStore keeping rows and blobs in dicts.

    ``status_writes`` records every status value written, per job, in order,
    so tests can check the lifecycle. Put an operation name in ``fail_on``
    to make it raise: "create", "upload:<bucket>", "update:<status>", "get".
    """

    def __init__(self) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.blobs: Dict[Tuple[str, str], bytes] = {}
        self.status_writes: Dict[str, List[str]] = {}
        self.fail_on: Set[str] = set()
        self._next_id = 1

    async def create_job(self, user_id: str, tool_type: str) -> ConversionJob:
        if "create" in self.fail_on:
            raise JobStoreError("insert failed")
        job_id = str(self._next_id)
        self._next_id += 1
        now = utc_now()
        self.rows[job_id] = {
            "id": job_id,
            "user_id": user_id,
            "tool_type": tool_type,
            "status": "pending",
            "input_file_url": "",
            "created_at": now,
            "updated_at": now,
        }
        self.status_writes[job_id] = ["pending"]
        return ConversionJob.model_validate(self.rows[job_id])

    async def update_job(
        self,
        job_id: str,
        changes: Dict[str, Any],
        expected_status: Optional[JobStatus] = None,
    ) -> ConversionJob:
        if f"update:{changes.get('status')}" in self.fail_on:
            raise JobStoreError("update failed")
        row = self.rows.get(job_id)
        if row is None or (expected_status is not None and row["status"] != expected_status.value):
            raise JobNotFoundError(f"no job {job_id} in status {expected_status}")
        row.update(changes)
        row["updated_at"] = utc_now()
        if "status" in changes:
            self.status_writes[job_id].append(changes["status"])
        return ConversionJob.model_validate(row)

    async def get_job(self, job_id: str) -> ConversionJob:
        if "get" in self.fail_on:
            raise JobStoreError("lookup failed")
        if job_id not in self.rows:
            raise JobNotFoundError(job_id)
        return ConversionJob.model_validate(self.rows[job_id])

    async def upload_blob(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        if f"upload:{bucket}" in self.fail_on:
            raise BlobStorageError("upload failed")
        self.blobs[(bucket, path)] = data

    async def fetch_blob(self, bucket: str, path: str) -> bytes:
        try:
            return self.blobs[(bucket, path)]
        except KeyError as exc:
            raise BlobStorageError(path) from exc

    def public_url(self, bucket: str, path: str) -> str:
        return f"https://store.test/storage/v1/object/public/{bucket}/{path}"


class FakeConverter(Converter):
    """Converter that records calls and returns fixed bytes, or raises ``error``."""

    def __init__(self) -> None:
        self.calls: List[Tuple[ToolType, List[str], Optional[ConversionOptions]]] = []
        self.error: Optional[Exception] = None
        self.output = b"converted-bytes"

    async def convert(self, tool, file_urls, options=None) -> ConversionResult:
        self.calls.append((tool, list(file_urls), options))
        if self.error is not None:
            raise self.error
        return ConversionResult(task_id="task-1", download_url="https://ilovepdf.test/out")

    async def download(self, task_id: str) -> bytes:
        return self.output

    async def ping(self) -> bool:
        return False


# ── Core fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def service(job_store, converter) -> ConversionService:
    return ConversionService(store=job_store, converter=converter)


@pytest.fixture
def client(service) -> TestClient:
    """
    A synchronous TestClient wrapping the FastAPI app, with the conversion
    service swapped for one built on the in-memory fakes.
    """
    app.dependency_overrides[get_conversion_service] = lambda: service
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


# ── Sample file fixtures ───────────────────────────────────────────────────────

@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Minimal PDF header bytes; the fakes never parse them."""
    return b"%PDF-1.4\n%%EOF"


@pytest.fixture
def sample_pdf_file(sample_pdf_bytes) -> dict:
    """
    A ``files=`` mapping ready for TestClient.

    Usage:
        response = client.post("/convert", files=sample_pdf_file, data={...})
    """
    return {"file": ("report.pdf", io.BytesIO(sample_pdf_bytes), "application/pdf")}

