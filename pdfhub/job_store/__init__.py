"""pdfhub/job_store/__init__.py — public API of the job_store package."""

from pdfhub.job_store.base import JobStore
from pdfhub.job_store.supabase_store import SupabaseJobStore

__all__ = [
    "JobStore",
    "SupabaseJobStore",
]
