"""
pdfhub/client/download.py

Fetches a converted file from its public URL and saves it locally.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from pdfhub.core.constants import DEFAULT_DOWNLOAD_FILENAME
from pdfhub.core.exceptions import DownloadError
from pdfhub.core.logger import get_logger

logger = get_logger(__name__)


def filename_from_url(url: str) -> str:
    """Last path segment of ``url``, or the default name when there is none."""
    segment = unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])
    return segment or DEFAULT_DOWNLOAD_FILENAME


async def download_file(
    client: httpx.AsyncClient,
    url: str,
    dest_dir: str | Path,
    filename: str | None = None,
) -> Path:
    """
    Save the file at ``url`` into ``dest_dir``.

    Args:
        client   : HTTP client used for the fetch.
        url      : Public URL of the converted file.
        dest_dir : Directory to write into; created if missing.
        filename : Name to save under. Defaults to the URL's last segment.

    Returns:
        Path of the written file.

    Raises:
        DownloadError: If the fetch fails or the file cannot be written.
    """
    try:
        resp = await client.get(url)
    except httpx.HTTPError as exc:
        raise DownloadError(f"Failed to download file: {exc}") from exc
    if not resp.is_success:
        raise DownloadError(f"Failed to download file: {resp.reason_phrase or resp.status_code}")

    target = Path(dest_dir) / Path(filename or filename_from_url(url)).name
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(resp.content)
    except OSError as exc:
        raise DownloadError(f"Failed to save file: {exc}") from exc

    logger.info("Downloaded %d byte(s) to '%s'.", len(resp.content), target)
    return target
