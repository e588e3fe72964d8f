"""pdfhub/client/__init__.py — public API of the client package."""

from pdfhub.client.download import download_file
from pdfhub.client.upload_widget import UploadWidget, WidgetState

__all__ = [
    "UploadWidget",
    "WidgetState",
    "download_file",
]
