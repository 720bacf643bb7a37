"""
Resume locator.

Turns a candidate's stored resume references into one URL whose bytes
can actually be downloaded. The direct URL is always tried first; a
signed, time-limited URL is requested from blob storage only when the
direct fetch is refused with 401/403, or when there is no URL at all.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from matchengine.data.models import ResumeReference, is_absolute_url
from matchengine.services.blob_store import BlobStore
from matchengine.utils.constants import RESUME_FETCH_HEADERS, SIGNED_URL_DEFAULT_SECONDS
from matchengine.utils.logger import get_logger

logger = get_logger(__name__)

# raw resources keep their extension in the object id; image/video ids do not
_UPLOAD_PATH_RE = re.compile(r"/(?:(?P<resource>[a-z]+)/)?upload/(?:v\d+/)?(?P<path>[^?#]+)")
_EXTENSION_RE = re.compile(r"\.[^./]*$")


class LocatorErrorKind(str, Enum):
    """Why no resume URL could be produced."""

    NO_RESUME_REFERENCE = "no_resume_reference"  # candidate never supplied one
    NO_RESUME_FOUND = "no_resume_found"  # had one, neither fetch produced bytes
    DIRECT_FETCH_ERROR = "direct_fetch_error"  # non-auth HTTP or network failure


class LocatorReason:
    """Diagnostic reason codes recorded on every locator result."""

    DIRECT_OK = "direct-url-ok"
    SIGNED_AFTER_401 = "signed-after-401"
    SIGNED_ALSO_FAILED = "signed-url-also-failed"
    NO_OBJECT_ID = "no-object-id"
    DIRECT_NETWORK_ERROR = "direct-url-error-network"
    NO_URL_FOUND = "no-url-found"
    SIGNED_FROM_OBJECT_ID = "signed-from-object-id"

    @staticmethod
    def direct_error(status_code: int) -> str:
        return f"direct-url-error-{status_code}"


@dataclass
class LocatorResult:
    """
    Outcome of resolving a resume reference.

    ``content`` holds the bytes downloaded while verifying the URL, so the
    caller need not download them again. ``reference`` is the original
    location string, used to pick an extractor by extension.
    """

    success: bool
    url: str = ""
    reason: str = ""
    error_kind: Optional[LocatorErrorKind] = None
    status_code: Optional[int] = None
    content: Optional[bytes] = None
    object_id: str = ""
    reference: str = ""
    tried_signed: bool = False

    @property
    def had_reference(self) -> bool:
        return self.error_kind != LocatorErrorKind.NO_RESUME_REFERENCE


def derive_object_id(
    profile_ref: Optional[ResumeReference],
    user_ref: Optional[ResumeReference],
    url: str = "",
) -> str:
    """
    Storage object id for a resume.

    Explicit ids win (profile, then legacy user); then a profile reference
    that is a bare storage path; then the id embedded in an upload URL.
    """
    for ref in (profile_ref, user_ref):
        if ref is not None and ref.public_id.strip():
            return ref.public_id.strip()

    if profile_ref is not None:
        reference = profile_ref.reference.strip()
        if reference and not is_absolute_url(reference):
            return reference.lstrip("/")

    if url:
        match = _UPLOAD_PATH_RE.search(url)
        if match:
            path = match.group("path")
            if match.group("resource") != "raw":
                path = _EXTENSION_RE.sub("", path)
            return path
    return ""


class ResumeLocator:
    """
    Resolves resume references to a fetchable URL.

    Usage:
        locator = ResumeLocator(blob_store)
        result = await locator.resolve(profile.resume, user.resume_reference)
    """

    def __init__(
        self,
        blob_store: BlobStore,
        http_client: Optional[httpx.AsyncClient] = None,
        fetch_timeout: float = 8.0,
        signed_url_ttl: int = SIGNED_URL_DEFAULT_SECONDS,
    ):
        """
        Initialize the locator.

        Args:
            blob_store: Issues signed URLs for private objects
            http_client: Shared httpx client; one is opened per call if omitted
            fetch_timeout: Default per-fetch timeout in seconds
            signed_url_ttl: Validity of issued signed URLs in seconds
        """
        self.blob_store = blob_store
        self._http_client = http_client
        self.fetch_timeout = fetch_timeout
        self.signed_url_ttl = signed_url_ttl

    async def resolve(
        self,
        profile_ref: Optional[ResumeReference],
        user_ref: Optional[ResumeReference] = None,
        timeout: Optional[float] = None,
    ) -> LocatorResult:
        """
        Produce a downloadable URL for the candidate's resume.

        Args:
            profile_ref: Reference on the candidate profile
            user_ref: Legacy reference on the user account
            timeout: Per-fetch timeout in seconds

        Returns:
            LocatorResult; on failure ``error_kind`` and ``reason`` say why
        """
        timeout = timeout if timeout is not None else self.fetch_timeout

        url = ""
        for ref in (profile_ref, user_ref):
            if ref is not None and ref.absolute_url:
                url = ref.absolute_url
                break

        object_id = derive_object_id(profile_ref, user_ref, url)
        reference = self._reference_name(profile_ref, user_ref, url, object_id)

        if not url and not object_id:
            logger.info("No resume reference on profile or user")
            return LocatorResult(
                success=False,
                reason=LocatorReason.NO_URL_FOUND,
                error_kind=LocatorErrorKind.NO_RESUME_REFERENCE,
            )

        if not url:
            signed = self._sign(object_id)
            if not signed:
                return LocatorResult(
                    success=False,
                    reason=LocatorReason.NO_URL_FOUND,
                    error_kind=LocatorErrorKind.NO_RESUME_FOUND,
                    object_id=object_id,
                    reference=reference,
                )
            return LocatorResult(
                success=True,
                url=signed,
                reason=LocatorReason.SIGNED_FROM_OBJECT_ID,
                object_id=object_id,
                reference=reference,
                tried_signed=True,
            )

        if self._http_client is not None:
            return await self._resolve_url(self._http_client, url, object_id, reference, timeout)

        async with httpx.AsyncClient() as client:
            return await self._resolve_url(client, url, object_id, reference, timeout)

    async def _resolve_url(
        self,
        client: httpx.AsyncClient,
        url: str,
        object_id: str,
        reference: str,
        timeout: float,
    ) -> LocatorResult:
        status, content = await self._fetch(client, url, timeout)

        if content is not None:
            return LocatorResult(
                success=True,
                url=url,
                reason=LocatorReason.DIRECT_OK,
                status_code=status,
                content=content,
                object_id=object_id,
                reference=reference,
            )

        if status is None:
            return LocatorResult(
                success=False,
                reason=LocatorReason.DIRECT_NETWORK_ERROR,
                error_kind=LocatorErrorKind.DIRECT_FETCH_ERROR,
                object_id=object_id,
                reference=reference,
            )

        if status not in (401, 403):
            logger.warning(f"Direct resume fetch failed with {status}; not retrying")
            return LocatorResult(
                success=False,
                reason=LocatorReason.direct_error(status),
                error_kind=LocatorErrorKind.DIRECT_FETCH_ERROR,
                status_code=status,
                object_id=object_id,
                reference=reference,
            )

        if not object_id:
            logger.warning(f"Direct resume fetch refused ({status}) and no object id to sign")
            return LocatorResult(
                success=False,
                reason=LocatorReason.NO_OBJECT_ID,
                error_kind=LocatorErrorKind.NO_RESUME_FOUND,
                status_code=status,
                reference=reference,
            )

        signed = self._sign(object_id)
        if not signed:
            return LocatorResult(
                success=False,
                reason=LocatorReason.SIGNED_ALSO_FAILED,
                error_kind=LocatorErrorKind.NO_RESUME_FOUND,
                status_code=status,
                object_id=object_id,
                reference=reference,
            )

        logger.info(f"Direct resume fetch refused ({status}); retrying once with signed URL")
        signed_status, signed_content = await self._fetch(client, signed, timeout)
        if signed_content is not None:
            return LocatorResult(
                success=True,
                url=signed,
                reason=LocatorReason.SIGNED_AFTER_401,
                status_code=signed_status,
                content=signed_content,
                object_id=object_id,
                reference=reference,
                tried_signed=True,
            )

        return LocatorResult(
            success=False,
            reason=LocatorReason.SIGNED_ALSO_FAILED,
            error_kind=LocatorErrorKind.NO_RESUME_FOUND,
            status_code=signed_status,
            object_id=object_id,
            reference=reference,
            tried_signed=True,
        )

    def _sign(self, object_id: str) -> str:
        return self.blob_store.signed_download_url(object_id, self.signed_url_ttl)

    @staticmethod
    async def _fetch(
        client: httpx.AsyncClient, url: str, timeout: float
    ) -> tuple[Optional[int], Optional[bytes]]:
        """
        GET ``url``.

        Returns:
            (status, body) on 2xx, (status, None) on HTTP error,
            (None, None) on network error or timeout
        """
        try:
            response = await client.get(
                url,
                headers=RESUME_FETCH_HEADERS,
                timeout=timeout,
                follow_redirects=True,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"Resume fetch network error: {type(e).__name__}")
            return None, None

        if response.is_success:
            return response.status_code, response.content
        return response.status_code, None

    @staticmethod
    def _reference_name(
        profile_ref: Optional[ResumeReference],
        user_ref: Optional[ResumeReference],
        url: str,
        object_id: str,
    ) -> str:
        """Best name for extension detection: original file name, URL, or id."""
        for ref in (profile_ref, user_ref):
            if ref is not None and ref.file_name:
                return ref.file_name
        return url or object_id
