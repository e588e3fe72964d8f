"""pdfhub/converter/__init__.py — public API of the converter package."""

from pdfhub.converter.base import ConversionOptions, ConversionResult, Converter
from pdfhub.converter.ilovepdf_client import ILovePDFClient

__all__ = [
    "Converter",
    "ConversionOptions",
    "ConversionResult",
    "ILovePDFClient",
]
