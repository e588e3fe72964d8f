"""
pdfhub/main.py

FastAPI application entry point.

Responsibilities:
  - Create the FastAPI app with metadata from config
  - Build the job store, conversion client and ConversionService at startup
    with explicit credentials, and close their HTTP clients at shutdown
  - Register all API routers
  - Add a global exception handler for uncaught AppBaseException
  - Expose /health and /health/dependencies for probes
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from pdfhub.api.convert_controller import get_conversion_service, router as convert_router
from pdfhub.converter.ilovepdf_client import ILovePDFClient
from pdfhub.core.config import settings
from pdfhub.core.exceptions import AppBaseException
from pdfhub.core.logger import get_logger
from pdfhub.job_store.supabase_store import SupabaseJobStore
from pdfhub.services.conversion_service import ConversionService

logger = get_logger(__name__)


# ── Lifespan ───────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    store = SupabaseJobStore(url=settings.supabase_url, api_key=settings.supabase_key)
    converter = ILovePDFClient(
        api_key=settings.ilovepdf_api_key,
        base_url=settings.ilovepdf_base_url,
    )
    app.state.conversion_service = ConversionService(store=store, converter=converter)
    logger.info("%s %s started.", settings.app_name, settings.app_version)
    try:
        yield
    finally:
        await converter.aclose()
        await store.aclose()


# ── App instance ───────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Accepts document uploads, converts them through the iLovePDF API, "
        "and tracks each conversion as a job with a pollable status."
    ),
    lifespan=lifespan,
)

# ── Routers ────────────────────────────────────────────────────────────────────

app.include_router(convert_router)

# ── Global exception handler ───────────────────────────────────────────────────

@app.exception_handler(AppBaseException)
async def app_exception_handler(request: Request, exc: AppBaseException) -> JSONResponse:
    """
    Safety-net for any AppBaseException that escapes controller-level handling.
    Returns the standard error shape: { "error": "..." }
    """
    logger.exception("Unhandled application error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ── Health endpoints ───────────────────────────────────────────────────────────

@app.get("/health", tags=["Health"], summary="Liveness probe")
async def health() -> dict:
    """Returns 200 OK when the service is running."""
    return {"status": "ok", "version": settings.app_version}


@app.get("/health/dependencies", tags=["Health"], summary="Backend connectivity probe")
async def health_dependencies(
    service: ConversionService = Depends(get_conversion_service),
) -> dict:
    """Reports whether Supabase and iLovePDF answer; always 200."""
    return await service.check_dependencies()
