"""
pdfhub/converter/base.py

Abstract interface for the conversion backend.

Services depend only on this interface. ConversionResult is the shared
vocabulary between the backend client and the conversion pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from pdfhub.models.tool_models import ToolType


@dataclass
class ConversionOptions:
    """
    Per-request options forwarded to the backend.

    Attributes:
        password : Required by pdf-protector, ignored by every other tool.
        ranges   : Page ranges for pdf-splitter (e.g. ``"1-3,5"``); optional.
    """

    password: str | None = None
    ranges: str | None = None


@dataclass
class ConversionResult:
    """
    A finished backend task.

    Attributes:
        task_id      : Backend task identifier, used to download the output.
        download_url : Backend-side URL of the output (may be empty).
    """

    task_id: str
    download_url: str = ""


class Converter(ABC):
    """
    Contract every conversion backend must fulfil.

    A conversion runs as start-task → upload inputs → execute → download;
    ``convert`` covers the first three steps and ``download`` the last.
    """

    @abstractmethod
    async def convert(
        self,
        tool: ToolType,
        file_urls: List[str],
        options: ConversionOptions | None = None,
    ) -> ConversionResult:
        """
        Run ``tool`` over the files at ``file_urls``.

        Args:
            tool      : The operation to run.
            file_urls : Publicly fetchable input URLs, uploaded in order.
            options   : Tool-specific options.

        Returns:
            ConversionResult for the executed task.

        Raises:
            ConversionError: If any backend step fails.
        """

    @abstractmethod
    async def download(self, task_id: str) -> bytes:
        """
        Return the output bytes of a finished task.

        Raises:
            ConversionError: If the download fails.
        """

    async def ping(self) -> bool:
        """Return True when the backend is reachable. Never raises."""
        return True

    async def aclose(self) -> None:
        """Release network resources held by the client."""
