"""Archive discovery and text extraction strategies."""

from .base import ArchiveDiscovery, Extractor
from .document_extractor import DocumentTextExtractor, pdf_bytes_to_text
from .playwright_extractor import ArchiveBrowser

__all__ = [
    "ArchiveBrowser",
    "ArchiveDiscovery",
    "DocumentTextExtractor",
    "Extractor",
    "pdf_bytes_to_text",
]
