"""
Service layer for the matching engine.

External collaborators: AI provider, blob storage and resume hosting.
The request-level service lives in ``matchengine.services.match_service``.
"""

from .ai_client import AIClient, CompletionResult, UpstreamErrorKind
from .blob_store import BlobStore, CloudinaryBlobStore
from .resume_locator import (
    LocatorErrorKind,
    LocatorReason,
    LocatorResult,
    ResumeLocator,
    derive_object_id,
)

__all__ = [
    "AIClient",
    "CompletionResult",
    "UpstreamErrorKind",
    "BlobStore",
    "CloudinaryBlobStore",
    "LocatorErrorKind",
    "LocatorReason",
    "LocatorResult",
    "ResumeLocator",
    "derive_object_id",
]
