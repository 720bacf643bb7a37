"""
Blob storage collaborator.

The matcher only needs one thing from file storage: a time-limited,
signed download link for a private resume object.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from matchengine.utils.config import StorageSettings, get_settings
from matchengine.utils.constants import (
    SIGNED_URL_DEFAULT_SECONDS,
    SIGNED_URL_MAX_SECONDS,
    SIGNED_URL_MIN_SECONDS,
)
from matchengine.utils.logger import get_logger

logger = get_logger(__name__)


def clamp_validity(seconds: int) -> int:
    """Signed links live between 30 seconds and 10 minutes."""
    return max(SIGNED_URL_MIN_SECONDS, min(SIGNED_URL_MAX_SECONDS, int(seconds)))


class BlobStore(ABC):
    """Issues signed download URLs for stored objects."""

    @abstractmethod
    def signed_download_url(
        self, object_id: str, expires_in: int = SIGNED_URL_DEFAULT_SECONDS
    ) -> str:
        """
        Signed URL for ``object_id``, valid for ``expires_in`` seconds
        (clamped to the allowed window). Empty string when no link can be
        issued.
        """
        pass


class CloudinaryBlobStore(BlobStore):
    """Signs private raw uploads with the Cloudinary SDK."""

    def __init__(
        self,
        settings: Optional[StorageSettings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or get_settings().storage
        self._clock = clock
        self._configured = False

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _ensure_sdk(self):
        import cloudinary
        import cloudinary.utils

        if not self._configured:
            cloudinary.config(
                cloud_name=self.settings.cloud_name,
                api_key=self.settings.api_key,
                api_secret=self.settings.api_secret,
                secure=True,
            )
            self._configured = True
        return cloudinary.utils

    def signed_download_url(
        self, object_id: str, expires_in: int = SIGNED_URL_DEFAULT_SECONDS
    ) -> str:
        if not object_id:
            return ""
        if not self.is_configured:
            logger.warning("Blob storage credentials missing; cannot sign resume URL")
            return ""

        expires_at = int(self._clock()) + clamp_validity(expires_in)
        utils = self._ensure_sdk()
        url = utils.private_download_url(
            object_id,
            None,
            resource_type="raw",
            type="private",
            expires_at=expires_at,
        )
        logger.debug(f"Issued signed URL for {object_id} (expires_at={expires_at})")
        return url or ""
