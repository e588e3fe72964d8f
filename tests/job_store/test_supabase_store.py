"""
tests/job_store/test_supabase_store.py

Tests for SupabaseJobStore against an httpx.MockTransport, so every
request the store makes can be inspected without a live project.
"""

from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from pdfhub.core.config import settings
from pdfhub.core.exceptions import BlobStorageError, JobNotFoundError, JobStoreError
from pdfhub.job_store.supabase_store import SupabaseJobStore
from pdfhub.models.job_models import JobStatus

_URL = "https://proj.supabase.test"


def _row(**overrides) -> dict:
    row = {
        "id": 1,
        "user_id": "user-1",
        "tool_type": "pdf-to-word",
        "status": "pending",
        "input_file_url": "",
        "output_file_url": None,
        "error_message": None,
    }
    row.update(overrides)
    return row


def _store(handler: Callable[[httpx.Request], httpx.Response], seen: List[httpx.Request]) -> SupabaseJobStore:
    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return SupabaseJobStore(url=_URL, api_key="anon-key", table="jobs", transport=httpx.MockTransport(record))


# ── Rows ───────────────────────────────────────────────────────────────────────

class TestCreateJob:

    @pytest.mark.asyncio
    async def test_inserts_pending_row_and_returns_it(self) -> None:
        seen: List[httpx.Request] = []
        store = _store(lambda req: httpx.Response(201, json=[_row()]), seen)

        job = await store.create_job("user-1", "pdf-to-word")

        assert job.id == "1"
        assert job.status is JobStatus.PENDING
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/jobs"
        assert request.headers["Prefer"] == "return=representation"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"
        body = json.loads(request.content)
        assert body["status"] == "pending"
        assert body["user_id"] == "user-1"
        assert body["tool_type"] == "pdf-to-word"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_http_error_becomes_job_store_error(self) -> None:
        store = _store(lambda req: httpx.Response(500, json={"message": "down"}), [])

        with pytest.raises(JobStoreError):
            await store.create_job("user-1", "pdf-to-word")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_becomes_job_store_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        store = _store(handler, [])

        with pytest.raises(JobStoreError):
            await store.create_job("user-1", "pdf-to-word")
        await store.aclose()


class TestUpdateJob:

    @pytest.mark.asyncio
    async def test_filters_on_id_and_expected_status(self) -> None:
        seen: List[httpx.Request] = []
        store = _store(lambda req: httpx.Response(200, json=[_row(status="processing")]), seen)

        job = await store.update_job("1", {"status": "processing"}, expected_status=JobStatus.PENDING)

        assert job.status is JobStatus.PROCESSING
        request = seen[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.1"
        assert request.url.params["status"] == "eq.pending"
        body = json.loads(request.content)
        assert body["status"] == "processing"
        assert "updated_at" in body
        await store.aclose()

    @pytest.mark.asyncio
    async def test_without_expected_status_filters_on_id_only(self) -> None:
        seen: List[httpx.Request] = []
        store = _store(lambda req: httpx.Response(200, json=[_row()]), seen)

        await store.update_job("1", {"input_file_url": "https://x"})

        assert "status" not in seen[0].url.params
        await store.aclose()

    @pytest.mark.asyncio
    async def test_no_matching_row_raises_not_found(self) -> None:
        store = _store(lambda req: httpx.Response(200, json=[]), [])

        with pytest.raises(JobNotFoundError):
            await store.update_job("1", {"status": "failed"}, expected_status=JobStatus.PROCESSING)
        await store.aclose()


class TestGetJob:

    @pytest.mark.asyncio
    async def test_returns_parsed_record(self) -> None:
        seen: List[httpx.Request] = []
        row = _row(status="completed", output_file_url="https://x/report.docx")
        store = _store(lambda req: httpx.Response(200, json=[row]), seen)

        job = await store.get_job("1")

        assert job.output_file_url == "https://x/report.docx"
        assert seen[0].url.params["id"] == "eq.1"
        assert seen[0].url.params["select"] == "*"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_empty_result_raises_not_found(self) -> None:
        store = _store(lambda req: httpx.Response(200, json=[]), [])

        with pytest.raises(JobNotFoundError):
            await store.get_job("999")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_malformed_record_raises_store_error(self) -> None:
        store = _store(lambda req: httpx.Response(200, json=[_row(status="completed")]), [])

        with pytest.raises(JobStoreError) as info:
            await store.get_job("1")

        assert not isinstance(info.value, JobNotFoundError)
        await store.aclose()

    @pytest.mark.asyncio
    async def test_non_json_body_raises_store_error(self) -> None:
        store = _store(lambda req: httpx.Response(200, text="<html>"), [])

        with pytest.raises(JobStoreError):
            await store.get_job("1")
        await store.aclose()


# ── Blobs ──────────────────────────────────────────────────────────────────────

class TestBlobs:

    @pytest.mark.asyncio
    async def test_upload_posts_bytes_without_upsert(self) -> None:
        seen: List[httpx.Request] = []
        store = _store(lambda req: httpx.Response(200, json={"Key": "uploads/u/1-a.pdf"}), seen)

        await store.upload_blob("uploads", "u/1-a.pdf", b"%PDF", "application/pdf")

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/storage/v1/object/uploads/u/1-a.pdf"
        assert request.headers["x-upsert"] == "false"
        assert request.headers["Content-Type"] == "application/pdf"
        assert request.content == b"%PDF"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_upload_conflict_raises_blob_error(self) -> None:
        store = _store(lambda req: httpx.Response(409, json={"error": "Duplicate"}), [])

        with pytest.raises(BlobStorageError):
            await store.upload_blob("uploads", "u/1-a.pdf", b"%PDF", "application/pdf")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_fetch_returns_bytes(self) -> None:
        store = _store(lambda req: httpx.Response(200, content=b"data"), [])

        assert await store.fetch_blob("converted", "u/1-a.docx") == b"data"
        await store.aclose()

    @pytest.mark.asyncio
    async def test_fetch_missing_raises_blob_error(self) -> None:
        store = _store(lambda req: httpx.Response(404), [])

        with pytest.raises(BlobStorageError):
            await store.fetch_blob("converted", "nope")
        await store.aclose()

    @pytest.mark.asyncio
    async def test_public_url(self) -> None:
        store = _store(lambda req: httpx.Response(200), [])

        url = store.public_url("converted", "u/1-converted-my report.docx")

        assert url == f"{_URL}/storage/v1/object/public/converted/u/1-converted-my%20report.docx"
        await store.aclose()


class TestPing:

    @pytest.mark.asyncio
    async def test_reachable(self) -> None:
        store = _store(lambda req: httpx.Response(200, json=[]), [])

        assert await store.ping() is True
        await store.aclose()

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        store = _store(handler, [])

        assert await store.ping() is False
        await store.aclose()


class TestTimeout:

    @pytest.mark.asyncio
    async def test_no_timeout_when_unset(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "http_timeout_seconds", None)
        store = SupabaseJobStore(url=_URL, api_key="anon-key")

        assert store._client.timeout.read is None
        assert store._client.timeout.write is None
        await store.aclose()

    @pytest.mark.asyncio
    async def test_timeout_from_settings(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "http_timeout_seconds", 30.0)
        store = SupabaseJobStore(url=_URL, api_key="anon-key")

        assert store._client.timeout.read == 30.0
        await store.aclose()
