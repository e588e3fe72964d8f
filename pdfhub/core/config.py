"""
pdfhub/core/config.py

Centralised configuration loaded from environment variables.
Use a .env file locally; the deployment injects these at runtime.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── Application ────────────────────────────────────────────────────────────
    app_name: str = "PDF Tools Conversion API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"                  # ignored when debug is on

    # ── Job store / blob storage (Supabase) ────────────────────────────────────
    supabase_url: str = "http://localhost:54321"
    supabase_key: str = ""
    jobs_table: str = "conversion_jobs"
    uploads_bucket: str = "uploads"
    converted_bucket: str = "converted"

    # ── Conversion backend (iLovePDF) ──────────────────────────────────────────
    ilovepdf_base_url: str = "https://api.ilovepdf.com"
    ilovepdf_api_key: Optional[str] = None   # no embedded fallback key

    # ── Uploads ────────────────────────────────────────────────────────────────
    max_upload_mb: int = 50

    # ── Outbound HTTP ──────────────────────────────────────────────────────────
    # Seconds per Supabase / iLovePDF call; None waits as long as the backend takes.
    http_timeout_seconds: Optional[float] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Single shared instance; import this everywhere.
settings = Settings()
