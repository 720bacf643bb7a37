"""
Tests for matchengine.services.blob_store: signed link validity and the
Cloudinary signer.
"""

import pytest

from matchengine.services.blob_store import CloudinaryBlobStore, clamp_validity
from matchengine.utils.config import StorageSettings


@pytest.mark.parametrize("seconds, expected", [(0, 30), (30, 30), (120, 120), (600, 600), (9999, 600)])
def test_clamp_validity(seconds, expected):
    assert clamp_validity(seconds) == expected


class TestCloudinaryBlobStore:
    def test_unconfigured_returns_empty(self):
        store = CloudinaryBlobStore(StorageSettings(cloud_name=None, api_key=None, api_secret=None))
        assert store.signed_download_url("resumes/jane") == ""

    def test_empty_object_id(self):
        store = CloudinaryBlobStore(StorageSettings(cloud_name="demo", api_key="1", api_secret="s"))
        assert store.signed_download_url("") == ""

    def test_signed_url_expiry(self):
        store = CloudinaryBlobStore(
            StorageSettings(cloud_name="demo", api_key="1234", api_secret="secret"),
            clock=lambda: 1_700_000_000,
        )
        url = store.signed_download_url("resumes/jane", expires_in=9999)
        assert url.startswith("https://api.cloudinary.com/")
        assert "expires_at=1700000600" in url
        assert "signature=" in url
