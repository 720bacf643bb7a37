"""
NLP pipeline for the matching engine.

Main Components:
- TextNormalizer: Lowercasing, synonym folding and tokenizing
- ExtractorFactory: Document text extraction (PDF)
"""

from .preprocessor import (
    TextNormalizer,
    get_text_normalizer,
    normalize_text,
    tokenize,
    unique,
)

from .extractors import (
    BaseExtractor,
    ExtractionErrorKind,
    ExtractionResult,
    ExtractorFactory,
    PDFExtractor,
)

__all__ = [
    "TextNormalizer",
    "get_text_normalizer",
    "normalize_text",
    "tokenize",
    "unique",
    "BaseExtractor",
    "ExtractionErrorKind",
    "ExtractionResult",
    "ExtractorFactory",
    "PDFExtractor",
]
