"""
pdfhub/models/tool_models.py

The closed set of conversion tools and the fixed per-tool rules shared by
the server and the upload widget:

  - which MIME types a tool accepts
  - what the converted file should be called when downloaded
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, List

from pdfhub.core.exceptions import UnsupportedToolError


class ToolType(str, Enum):
    """Conversion operation requested by the user, keyed by its wire tag."""

    PDF_TO_WORD = "pdf-to-word"
    WORD_TO_PDF = "word-to-pdf"
    PDF_MERGER = "pdf-merger"
    PDF_SPLITTER = "pdf-splitter"
    PDF_COMPRESSOR = "pdf-compressor"
    PDF_PROTECTOR = "pdf-protector"
    PDF_TO_EXCEL = "pdf-to-excel"
    EXCEL_TO_PDF = "excel-to-pdf"
    PDF_TO_IMAGES = "pdf-to-images"
    IMAGES_TO_PDF = "images-to-pdf"

    @classmethod
    def parse(cls, raw: str) -> "ToolType":
        """Return the member for ``raw`` or raise UnsupportedToolError."""
        try:
            return cls(raw)
        except ValueError as exc:
            raise UnsupportedToolError("Unsupported tool type") from exc


# ── MIME allow-lists ───────────────────────────────────────────────────────────

_PDF = ["application/pdf"]
_WORD = [
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
]
_EXCEL = [
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
]
_IMAGES = ["image/jpeg", "image/png", "image/gif", "image/bmp"]


@dataclass(frozen=True)
class ToolRules:
    """
    Fixed rules for one tool.

    Attributes:
        allowed_types   : MIME types the tool accepts as input.
        filename_format : ``str.format`` template for the download name;
                          ``{name}`` is the original name without extension.
    """

    allowed_types: List[str]
    filename_format: str


TOOL_RULES: Dict[ToolType, ToolRules] = {
    ToolType.PDF_TO_WORD: ToolRules(_PDF, "{name}.docx"),
    ToolType.WORD_TO_PDF: ToolRules(_WORD, "{name}.pdf"),
    ToolType.PDF_MERGER: ToolRules(_PDF, "merged-{name}.pdf"),
    ToolType.PDF_SPLITTER: ToolRules(_PDF, "split-{name}.pdf"),
    ToolType.PDF_COMPRESSOR: ToolRules(_PDF, "compressed-{name}.pdf"),
    ToolType.PDF_PROTECTOR: ToolRules(_PDF, "protected-{name}.pdf"),
    ToolType.PDF_TO_EXCEL: ToolRules(_PDF, "{name}.xlsx"),
    ToolType.EXCEL_TO_PDF: ToolRules(_EXCEL, "{name}.pdf"),
    ToolType.PDF_TO_IMAGES: ToolRules(_PDF, "{name}.zip"),
    ToolType.IMAGES_TO_PDF: ToolRules(_IMAGES, "{name}.pdf"),
}

_missing = set(ToolType) - set(TOOL_RULES)
if _missing:
    raise RuntimeError(f"TOOL_RULES has no entry for: {sorted(t.value for t in _missing)}")


# ── Public helpers ─────────────────────────────────────────────────────────────

def get_allowed_file_types(tool: ToolType) -> List[str]:
    """Return the MIME types accepted by ``tool`` (a fresh list each call)."""
    return list(TOOL_RULES[tool].allowed_types)


def strip_extension(filename: str) -> str:
    """Drop the last extension: ``report.v2.pdf`` → ``report.v2``."""
    suffix = PurePosixPath(filename).suffix
    return filename[: -len(suffix)] if suffix else filename


def get_download_filename(original_filename: str, tool: ToolType) -> str:
    """
    Suggested name for the converted file.

    >>> get_download_filename("report.pdf", ToolType.PDF_TO_WORD)
    'report.docx'
    """
    return TOOL_RULES[tool].filename_format.format(name=strip_extension(original_filename))
