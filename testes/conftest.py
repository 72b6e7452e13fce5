import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from squarespace_migrator.models import ImportedAsset
from squarespace_migrator.utils import errors
from squarespace_migrator.utils.errors import AssetFetchFailure, AssetStoreFailure

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


class FakeMediaStore:
    """In-memory media store; ``fail_on`` holds source URLs whose store raises."""

    def __init__(self, fail_on=()):
        self.assets = {}
        self.stored = []
        self.fail_on = set(fail_on)

    def lookup_by_source_url(self, source_url):
        return self.assets.get(source_url)

    def store(self, data, filename, *, source_url, mime_type=None, owning_post_id=None):
        if source_url in self.fail_on:
            raise AssetStoreFailure("media library rejected the upload")
        canonical_id = str(100 + len(self.stored))
        asset = ImportedAsset(
            canonical_id=canonical_id,
            canonical_url=f"https://new.example/wp-content/uploads/{filename}",
            source_url=source_url,
            filename=filename,
        )
        self.stored.append((asset, mime_type, owning_post_id))
        self.assets[source_url] = asset
        return asset


class FakeFetcher:
    def __init__(self, payload=PNG_BYTES, failing=()):
        self.payload = payload
        self.failing = set(failing)
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        if url in self.failing:
            raise AssetFetchFailure(f"Download failed: 404 for {url}")
        return self.payload


@pytest.fixture(autouse=True)
def report_to_tmp(tmp_path):
    """Keep the run log and JSONL event files out of the working tree."""
    previous = errors.report_dir()
    errors.configure_reporting(str(tmp_path / "reports"))
    yield tmp_path / "reports"
    errors.configure_reporting(previous)


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def fetcher():
    return FakeFetcher()
