"""
pdfhub/core/constants.py

Application-wide fixed constants.

These are business rules that are part of the system's contract and are
NOT configurable via environment variables.
"""

# ── Upload limits ──────────────────────────────────────────────────────────────

#: Largest file the upload widget accepts (50 MiB).
MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

# ── Status polling ─────────────────────────────────────────────────────────────

#: Seconds between two status checks made by the upload widget.
POLL_INTERVAL_SECONDS: float = 5.0

#: Status checks before the widget gives up (60 × 5 s ≈ 5 minutes).
POLL_MAX_ATTEMPTS: int = 60

# ── Blob naming ────────────────────────────────────────────────────────────────

#: Used when the uploaded part carries no filename.
DEFAULT_UPLOAD_FILENAME: str = "upload"

#: Used by the download helper when neither a name nor a URL segment is usable.
DEFAULT_DOWNLOAD_FILENAME: str = "converted-file.pdf"
