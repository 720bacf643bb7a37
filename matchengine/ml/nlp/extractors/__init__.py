"""
Document text extractors.

Only PDF resumes are parsed; other formats get an explicit unsupported result.
"""

from .base import BaseExtractor, ExtractionErrorKind, ExtractionResult, file_extension
from .pdf_extractor import PDFExtractor
from .extractor_factory import ExtractorFactory

__all__ = [
    "BaseExtractor",
    "ExtractionErrorKind",
    "ExtractionResult",
    "file_extension",
    "PDFExtractor",
    "ExtractorFactory",
]
