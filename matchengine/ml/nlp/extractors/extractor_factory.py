"""
Factory for selecting a document extractor from the resume reference.
"""

from typing import Optional

from matchengine.utils.constants import (
    KNOWN_UNSUPPORTED_FORMATS,
    UNSUPPORTED_FORMAT_MESSAGE,
)
from matchengine.utils.logger import get_logger

from .base import BaseExtractor, ExtractionErrorKind, ExtractionResult, file_extension
from .pdf_extractor import PDFExtractor

logger = get_logger(__name__)


class ExtractorFactory:
    """
    Factory class for document extractors.

    Dispatch is on the extension of the resume's original reference, since
    the bytes of a download carry no filename. References without an
    extension are tried as PDF, whose signature check rejects anything else.
    """

    _extractors: list[BaseExtractor] = []
    _initialized: bool = False

    @classmethod
    def _initialize(cls) -> None:
        """Initialize available extractors."""
        if cls._initialized:
            return

        cls._extractors = [PDFExtractor()]
        cls._initialized = True

    @classmethod
    def get_extractor(cls, filename: str) -> Optional[BaseExtractor]:
        """
        Get the appropriate extractor for a filename, storage id or URL.

        Returns:
            Appropriate extractor or None if the format is not supported
        """
        cls._initialize()

        extension = file_extension(filename)
        if not extension:
            return cls._extractors[0]

        for extractor in cls._extractors:
            if extension in extractor.supported_extensions:
                return extractor

        if extension in KNOWN_UNSUPPORTED_FORMATS:
            logger.info(f"Skipping {extension} resume: format not parsed")
        else:
            logger.warning(f"No extractor found for extension: {extension}")
        return None

    @classmethod
    def extract_from_bytes(cls, content: bytes, filename: str) -> ExtractionResult:
        """
        Extract text from file bytes using the appropriate extractor.

        Args:
            content: Raw file bytes
            filename: Original reference (for extension detection)

        Returns:
            ExtractionResult with extracted text, or the unsupported-format result
        """
        extractor = cls.get_extractor(filename)

        if extractor is None:
            return ExtractionResult.failure(
                ExtractionErrorKind.UNSUPPORTED_FORMAT,
                UNSUPPORTED_FORMAT_MESSAGE,
                extension=file_extension(filename),
            )

        return extractor.extract_from_bytes(content, filename)

    @classmethod
    def get_supported_extensions(cls) -> list[str]:
        """Get list of all supported file extensions."""
        cls._initialize()

        extensions = []
        for extractor in cls._extractors:
            extensions.extend(extractor.supported_extensions)
        return extensions

