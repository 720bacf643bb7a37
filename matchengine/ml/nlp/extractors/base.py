"""
Base extractor class for document text extraction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse


class ExtractionErrorKind(str, Enum):
    """Why an extraction produced no text."""

    INVALID_FORMAT = "invalid_format"  # signature mismatch
    UNSUPPORTED_FORMAT = "unsupported_format"  # doc/docx/unknown, never parsed
    PARSE_FAILED = "parse_failed"
    DOWNLOAD_FAILED = "download_failed"


@dataclass
class ExtractionResult:
    """Result of text extraction from a document."""

    text: str
    page_count: int = 0
    metadata: dict = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    success: bool = True
    error_kind: Optional[ExtractionErrorKind] = None
    error_message: Optional[str] = None

    @property
    def word_count(self) -> int:
        """Count words in extracted text."""
        return len(self.text.split())

    @property
    def is_empty(self) -> bool:
        """Check if extraction resulted in empty text."""
        return len(self.text.strip()) == 0

    @property
    def is_unsupported(self) -> bool:
        return self.error_kind == ExtractionErrorKind.UNSUPPORTED_FORMAT

    @classmethod
    def failure(
        cls, kind: ExtractionErrorKind, message: str, **metadata
    ) -> "ExtractionResult":
        """Build a failed result carrying no text."""
        return cls(
            text="",
            success=False,
            error_kind=kind,
            error_message=message,
            metadata=dict(metadata),
        )


def file_extension(name: str) -> str:
    """
    Lowercase extension of a filename, storage id or URL path.

    Query strings and fragments are ignored; returns "" when there is none.
    """
    if not name:
        return ""
    path = urlparse(name).path if "://" in name else name.split("?", 1)[0]
    return PurePosixPath(path).suffix.lower()


class BaseExtractor(ABC):
    """
    Abstract base class for document text extractors.

    Extractors work on in-memory bytes only; fetching is the caller's job.
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> tuple[str, ...]:
        """Return tuple of supported file extensions (e.g., '.pdf')."""
        pass

    def can_extract(self, filename: str) -> bool:
        """Check if this extractor can handle the given file name."""
        return file_extension(filename) in self.supported_extensions

    @abstractmethod
    def extract_from_bytes(
        self, content: bytes, filename: str = "document"
    ) -> ExtractionResult:
        """
        Extract text content from document bytes.

        Args:
            content: Raw bytes of the document
            filename: Original filename (for extension detection and logs)

        Returns:
            ExtractionResult containing the extracted text and metadata
        """
        pass
