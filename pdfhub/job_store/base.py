"""
pdfhub/job_store/base.py

Abstract interface for the job store layer: the jobs table plus the blob
buckets that hold uploaded and converted files.

Design goals:
  - Services depend only on this interface, never on a concrete backend.
  - Status writes are conditional on the status the caller last observed,
    so a stale writer can never move a job backwards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pdfhub.models.job_models import ConversionJob, JobStatus


class JobStore(ABC):
    """
    Contract every persistence/storage backend must fulfil.

    Concrete implementations (e.g. SupabaseJobStore) wrap a specific backend
    and translate its API to this interface.
    """

    # ── Jobs table ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_job(self, user_id: str, tool_type: str) -> ConversionJob:
        """
        Insert a new job in ``pending`` state.

        Args:
            user_id   : Owning user.
            tool_type : Raw tool tag from the request.

        Returns:
            The stored record, including the identifier assigned by the store.

        Raises:
            JobStoreError: If the insert fails.
        """

    @abstractmethod
    async def update_job(
        self,
        job_id: str,
        changes: Dict[str, Any],
        expected_status: Optional[JobStatus] = None,
    ) -> ConversionJob:
        """
        Apply ``changes`` to one job and return the updated record.

        Args:
            job_id          : Identifier of the job to update.
            changes         : Column → value mapping.
            expected_status : When given, the update only applies while the
                              stored status still equals this value.

        Raises:
            JobNotFoundError: No row matched (unknown id or status moved on).
            JobStoreError:    If the update fails.
        """

    @abstractmethod
    async def get_job(self, job_id: str) -> ConversionJob:
        """
        Return the current record for ``job_id``.

        Raises:
            JobNotFoundError: If no job has this identifier.
            JobStoreError:    If the lookup fails.
        """

    # ── Blobs ──────────────────────────────────────────────────────────────────

    @abstractmethod
    async def upload_blob(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        """
        Store ``data`` under ``bucket/path``.

        Raises:
            BlobStorageError: If the upload fails.
        """

    @abstractmethod
    async def fetch_blob(self, bucket: str, path: str) -> bytes:
        """
        Return the bytes stored under ``bucket/path``.

        Raises:
            BlobStorageError: If the object is missing or the fetch fails.
        """

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str:
        """Return the publicly fetchable URL of ``bucket/path`` (no network call)."""

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        """Return True when the backend is reachable. Never raises."""
        return True

    async def aclose(self) -> None:
        """Release network resources held by the store."""
