"""
pdfhub/core/logger.py

Centralised logging configuration.
Every module should obtain its logger via:

    from pdfhub.core.logger import get_logger
    logger = get_logger(__name__)

Records pass through SecretMaskingFilter, which masks the Supabase and
iLovePDF keys in the message, the traceback and the stack text before
the handler formats them.
"""

import logging
import sys
from typing import Iterable, List

from pdfhub.core.config import settings

_MASK = "***"
_TRACEBACK_FORMATTER = logging.Formatter()


class SecretMaskingFilter(logging.Filter):
    """
    Replace every configured secret with ``***`` in the rendered message,
    the traceback text and the stack text of a record.
    """

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        # Longest first, so a key that contains another is masked whole.
        self._secrets: List[str] = sorted({s for s in secrets if s}, key=len, reverse=True)

    def _mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, _MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = self._mask(message)
        if masked != message:
            record.msg, record.args = masked, None
        # Formatter.format reuses exc_text when it is already set.
        if record.exc_info and not record.exc_text:
            record.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self._mask(record.exc_text)
        if record.stack_info:
            record.stack_info = self._mask(record.stack_info)
        return True


def _level() -> int:
    if settings.debug:
        return logging.DEBUG
    level = logging.getLevelName(settings.log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handler() -> logging.StreamHandler:
    """Return a stdout handler that masks secrets and prints one line per record."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_level())
    handler.addFilter(SecretMaskingFilter([settings.supabase_key, settings.ilovepdf_api_key or ""]))
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return handler


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        # Test runners install their own handlers.
        return

    root.setLevel(_level())
    root.addHandler(_build_handler())

    # httpx logs one line per request, i.e. several per conversion.
    for name in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_root_logger()


def get_logger(name: str) -> logging.Logger:
    """Return a named logger."""
    return logging.getLogger(name)
