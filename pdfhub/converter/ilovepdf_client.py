"""
pdfhub/converter/ilovepdf_client.py

iLovePDF implementation of the Converter interface.

Every tool maps to one backend operation code and one options builder;
the table below must cover the whole ToolType enumeration, which is
checked when the module is imported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import httpx

from pdfhub.converter.base import ConversionOptions, ConversionResult, Converter
from pdfhub.core.config import settings
from pdfhub.core.exceptions import ConversionError
from pdfhub.core.logger import get_logger
from pdfhub.models.tool_models import ToolType

logger = get_logger(__name__)


# ── Operation table ────────────────────────────────────────────────────────────

def _no_options(options: ConversionOptions) -> Dict[str, Any]:
    return {}


def _protect_options(options: ConversionOptions) -> Dict[str, Any]:
    if not options.password:
        raise ConversionError("A password is required to protect a PDF")
    return {"password": options.password}


def _split_options(options: ConversionOptions) -> Dict[str, Any]:
    return {"ranges": options.ranges} if options.ranges else {}


@dataclass(frozen=True)
class ToolOperation:
    code: str
    build_options: Callable[[ConversionOptions], Dict[str, Any]] = _no_options


OPERATIONS: Dict[ToolType, ToolOperation] = {
    ToolType.PDF_TO_WORD: ToolOperation("pdftodocx"),
    ToolType.WORD_TO_PDF: ToolOperation("doctopdf"),
    ToolType.PDF_MERGER: ToolOperation("merge"),
    ToolType.PDF_SPLITTER: ToolOperation("split", _split_options),
    ToolType.PDF_COMPRESSOR: ToolOperation("compress"),
    ToolType.PDF_PROTECTOR: ToolOperation("protect", _protect_options),
    ToolType.PDF_TO_EXCEL: ToolOperation("pdftoexcel"),
    ToolType.EXCEL_TO_PDF: ToolOperation("excelto"),
    ToolType.PDF_TO_IMAGES: ToolOperation("pdftoimage"),
    ToolType.IMAGES_TO_PDF: ToolOperation("imagestopdf"),
}

_missing = set(ToolType) - set(OPERATIONS)
if _missing:
    raise RuntimeError(f"OPERATIONS has no entry for: {sorted(t.value for t in _missing)}")


# ── Client ─────────────────────────────────────────────────────────────────────

class ILovePDFClient(Converter):
    """
    Converter backed by the iLovePDF REST API.

    The API key is passed in explicitly (normally from settings at startup);
    there is no built-in fallback key.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_key   : iLovePDF project key. Defaults to ``settings.ilovepdf_api_key``.
            base_url  : API root. Defaults to ``settings.ilovepdf_base_url``.
            transport : Optional httpx transport (tests pass a MockTransport).

        Raises:
            ValueError: If no API key is configured.
        """
        key = api_key or settings.ilovepdf_api_key
        if not key:
            raise ValueError("An iLovePDF API key is required (set ILOVEPDF_API_KEY).")

        self._base_url = (base_url or settings.ilovepdf_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {key}"},
            transport=transport,
            timeout=settings.http_timeout_seconds,
        )

    # ── Converter interface ────────────────────────────────────────────────────

    async def convert(
        self,
        tool: ToolType,
        file_urls: List[str],
        options: ConversionOptions | None = None,
    ) -> ConversionResult:
        if not file_urls:
            raise ConversionError("No input files to convert")

        operation = OPERATIONS[tool]
        payload = operation.build_options(options or ConversionOptions())

        task_id = await self._start(operation.code)
        # Inputs go up one at a time, in order.
        for index, url in enumerate(file_urls):
            await self._upload(task_id, index, url)
        data = await self._execute(task_id, payload)

        logger.info("iLovePDF task %s (%s) executed.", task_id, operation.code)
        return ConversionResult(task_id=task_id, download_url=str(data.get("download_url") or ""))

    async def download(self, task_id: str) -> bytes:
        resp = await self._request("GET", f"/download/{task_id}", failure="Failed to download file")
        return resp.content

    async def ping(self) -> bool:
        try:
            resp = await self._client.get("/tools")
        except httpx.HTTPError as exc:
            logger.warning("iLovePDF unreachable: %s", exc)
            return False
        return resp.is_success

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Task steps ─────────────────────────────────────────────────────────────

    async def _start(self, code: str) -> str:
        resp = await self._request("POST", f"/start/{code}", failure="Failed to start task")
        task_id = self._json(resp).get("task")
        if not task_id:
            raise ConversionError("Failed to start task: no task id returned")
        return str(task_id)

    async def _upload(self, task_id: str, index: int, url: str) -> None:
        await self._request(
            "POST",
            f"/upload/{task_id}/{index}",
            json={"url": url},
            failure=f"Failed to upload file {index}",
        )

    async def _execute(self, task_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._request(
            "POST",
            f"/execute/{task_id}",
            json=payload,
            failure="Task execution failed",
        )
        return self._json(resp)

    async def _request(self, method: str, path: str, *, failure: str, **kwargs: Any) -> httpx.Response:
        """Send one request; any transport error or non-2xx becomes ConversionError(failure)."""
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ConversionError(f"{failure}: {exc}") from exc
        if not resp.is_success:
            raise ConversionError(f"{failure}: {resp.reason_phrase or resp.status_code}")
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as exc:
            raise ConversionError("Conversion service returned an invalid response") from exc
        if not isinstance(data, dict):
            raise ConversionError("Conversion service returned an invalid response")
        return data
