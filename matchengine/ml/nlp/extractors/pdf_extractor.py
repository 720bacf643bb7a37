"""
PDF resume text extraction.

Bytes must start with the ``%PDF`` marker. Text is read with pdfplumber;
when that yields little (scanned pages, odd encodings) pypdf gets a turn
and the longer of the two outputs wins.
"""

import io
from typing import Callable, Iterable, NamedTuple, Optional

import pdfplumber
from pypdf import PdfReader

from matchengine.utils.constants import PDF_MAGIC
from matchengine.utils.logger import get_logger

from .base import BaseExtractor, ExtractionErrorKind, ExtractionResult

logger = get_logger(__name__)

# pdfplumber output shorter than this gets a second opinion from pypdf
MIN_PRIMARY_CHARS = 50
# below this the document is probably scanned
MIN_USEFUL_CHARS = 10


class _Pass(NamedTuple):
    backend: str
    text: str
    page_count: int
    error: Optional[str] = None

    @property
    def length(self) -> int:
        return len(self.text)


def _join_pages(pages: Iterable[Callable[[], Optional[str]]]) -> str:
    parts = [text.strip() for text in (read() for read in pages) if text and text.strip()]
    return "\n\n".join(parts)


def _pdfplumber_pass(content: bytes) -> _Pass:
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            text = _join_pages(page.extract_text for page in pdf.pages)
            return _Pass("pdfplumber", text, len(pdf.pages))
    except Exception as e:
        logger.debug(f"pdfplumber could not read document: {e}")
        return _Pass("pdfplumber", "", 0, str(e))


def _pypdf_pass(content: bytes) -> _Pass:
    try:
        reader = PdfReader(io.BytesIO(content))
        text = _join_pages(page.extract_text for page in reader.pages)
        return _Pass("pypdf", text, len(reader.pages))
    except Exception as e:
        logger.debug(f"pypdf could not read document: {e}")
        return _Pass("pypdf", "", 0, str(e))


class PDFExtractor(BaseExtractor):
    """Extracts plain text from PDF bytes."""

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".pdf",)

    @staticmethod
    def has_pdf_signature(content: bytes) -> bool:
        return bool(content) and content[: len(PDF_MAGIC)] == PDF_MAGIC

    def extract_from_bytes(
        self, content: bytes, filename: str = "document.pdf"
    ) -> ExtractionResult:
        if not self.has_pdf_signature(content):
            logger.warning(f"Rejected {filename}: missing PDF signature")
            return ExtractionResult.failure(
                ExtractionErrorKind.INVALID_FORMAT,
                "Invalid PDF format",
                filename=filename,
            )

        warnings: list[str] = []
        best = _pdfplumber_pass(content)

        if best.length <= MIN_PRIMARY_CHARS:
            warnings.append("pdfplumber extraction yielded limited text, trying pypdf")
            second = _pypdf_pass(content)
            if best.error and second.error:
                logger.error(f"Could not parse {filename}: {second.error}")
                return ExtractionResult.failure(
                    ExtractionErrorKind.PARSE_FAILED, second.error, filename=filename
                )
            if best.error or second.length >= best.length:
                best = second

        if best.length < MIN_USEFUL_CHARS:
            warnings.append("PDF may be image-based or encrypted")

        return ExtractionResult(
            text=best.text,
            page_count=best.page_count,
            metadata={"filename": filename, "extractor": best.backend, "page_count": best.page_count},
            warnings=warnings,
        )
