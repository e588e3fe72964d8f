"""
pdfhub/api/convert_controller.py

Handles incoming requests to POST /convert and GET /convert.

This layer is responsible only for HTTP concerns:
  - Parsing the multipart form (file, toolType, userId and the optional
    password / ranges fields).
  - Delegating the pipeline and job lookups to ConversionService.
  - Translating service-level errors into appropriate HTTP responses.

Responses (POST):
  200  { "success": true, "jobId": "...", "downloadUrl": "..." }
  400  A field was missing or invalid, or the tool type is unsupported.
  500  A pipeline step failed; where a job exists it is marked failed.

Responses (GET):
  200  { "job": { ...ConversionJob... } }
  400  The jobId query parameter was missing.
  404  No job has this identifier, or the lookup failed.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from pdfhub.converter.base import ConversionOptions
from pdfhub.core.exceptions import (
    AppBaseException,
    ConversionPipelineError,
    InvalidRequestError,
    JobStoreError,
    UnsupportedToolError,
)
from pdfhub.core.logger import get_logger
from pdfhub.models.job_models import ConvertResponse, JobResponse
from pdfhub.services.conversion_service import ConversionService

logger = get_logger(__name__)

router = APIRouter(prefix="/convert", tags=["Convert"])


# ── Helpers ────────────────────────────────────────────────────────────────────

def get_conversion_service(request: Request) -> ConversionService:
    """Return the service built at startup (overridden in tests)."""
    return request.app.state.conversion_service


def _err(message: str, status: int = 400) -> JSONResponse:
    """Return a JSON error response with the standard error shape."""
    return JSONResponse(status_code=status, content={"error": message})


def _text_field(form, name: str) -> Optional[str]:
    """Return a stripped text form field, or None when absent or blank."""
    value = form.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.post("", response_model=ConvertResponse, summary="Upload and convert a file")
async def convert(
    request: Request,
    service: ConversionService = Depends(get_conversion_service),
) -> JSONResponse:
    """
    Accepts multipart/form-data with:

      file      (required) — the document to convert.
      toolType  (required) — one of the supported tool tags, e.g. ``pdf-to-word``.
      userId    (required) — owner of the job; prefixes the stored blob paths.
      password  (optional) — required by ``pdf-protector``.
      ranges    (optional) — page ranges for ``pdf-splitter``.

    The conversion runs to completion before the response is sent.
    """
    # ── 1. Parse multipart form ────────────────────────────────────────────────
    try:
        form = await request.form()
    except Exception:
        return _err("Invalid multipart/form-data payload.")

    upload = form.get("file")
    file_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None
    if isinstance(upload, StarletteUploadFile):
        file_bytes = await upload.read()
        filename = upload.filename
        content_type = upload.content_type

    tool_type = _text_field(form, "toolType")
    user_id = _text_field(form, "userId")
    options = ConversionOptions(
        password=_text_field(form, "password"),
        ranges=_text_field(form, "ranges"),
    )

    logger.info("Convert request received — tool=%s  user=%s  file='%s'", tool_type, user_id, filename)

    # ── 2. Delegate to service ─────────────────────────────────────────────────
    try:
        result = await service.convert(
            file_bytes=file_bytes,
            filename=filename,
            content_type=content_type,
            tool_type=tool_type,
            user_id=user_id,
            options=options,
        )

    except InvalidRequestError as exc:
        logger.warning("Convert request rejected: %s", exc)
        return _err(str(exc))

    except UnsupportedToolError as exc:
        logger.warning("Unsupported tool type '%s' rejected.", tool_type)
        return _err(str(exc))

    except ConversionPipelineError as exc:
        logger.error("Conversion pipeline error: %s", exc)
        return _err(str(exc), status=500)

    except AppBaseException as exc:
        logger.exception("Application error during conversion: %s", exc)
        return _err("Internal server error", status=500)

    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during conversion: %s", exc)
        return _err("Internal server error", status=500)

    logger.info("Convert complete — job %s.", result.job_id)
    return JSONResponse(status_code=200, content=result.model_dump(by_alias=True))


@router.get("", response_model=JobResponse, summary="Look up a conversion job")
async def get_job(
    job_id: Optional[str] = Query(default=None, alias="jobId"),
    service: ConversionService = Depends(get_conversion_service),
) -> JSONResponse:
    """Return the current job record for ``?jobId=…``."""
    try:
        job = await service.get_job(job_id)

    except InvalidRequestError as exc:
        return _err(str(exc))

    except JobStoreError as exc:
        logger.warning("Job lookup failed for '%s': %s", job_id, exc)
        return _err("Job not found", status=404)

    return JSONResponse(status_code=200, content={"job": job.model_dump(mode="json")})
