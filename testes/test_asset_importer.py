import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
import requests

from conftest import JPEG_BYTES, PNG_BYTES, FakeFetcher, FakeMediaStore
from squarespace_migrator.migrators.asset_importer import (
    AssetImporter,
    extension_for,
    filename_for,
    http_fetch,
    is_failure,
    url_filename,
)
from squarespace_migrator.models import AssetFailure, ImportedAsset
from squarespace_migrator.utils.errors import AssetFetchFailure

URL = "https://images.squarespace-cdn.com/content/v1/abc/Spa%20Room"


def test_same_url_is_stored_once(media_store, fetcher):
    importer = AssetImporter(media_store, fetch=fetcher)
    first = importer.import_asset(URL, owning_post_id="7")
    second = importer.import_asset(URL, owning_post_id="8")
    assert isinstance(first, ImportedAsset)
    assert first == second
    assert len(media_store.stored) == 1
    assert fetcher.calls == [URL]


def test_extension_is_sniffed_when_missing():
    assert extension_for(PNG_BYTES) == ".png"
    assert extension_for(JPEG_BYTES) == ".jpg"
    assert extension_for(b"not an image at all") == ".webp"
    assert extension_for(b"") == ".webp"


def test_filename_from_url():
    assert url_filename(URL + "?format=750w") == "Spa Room"
    assert filename_for(URL, PNG_BYTES) == "Spa Room.png"
    assert filename_for("https://cdn.example/a/photo.jpeg", PNG_BYTES) == "photo.jpeg"


def test_store_receives_sniffed_filename_and_mime(media_store):
    importer = AssetImporter(media_store, fetch=FakeFetcher(JPEG_BYTES))
    asset = importer.import_asset(URL, owning_post_id="3")
    assert asset.filename == "Spa Room.jpg"
    _stored, mime, owner = media_store.stored[0]
    assert mime == "image/jpeg"
    assert owner == "3"


def test_fetch_failure_is_returned_and_recorded(media_store):
    importer = AssetImporter(media_store, fetch=FakeFetcher(failing={URL}))
    result = importer.import_asset(URL, owning_post_id="5")
    assert isinstance(result, AssetFailure)
    assert result.kind == "fetch"
    assert result.owning_post_id == "5"
    assert importer.failures == [result]
    assert media_store.stored == []
    assert is_failure(result)


def test_failed_url_is_not_fetched_again(media_store):
    fetcher = FakeFetcher(failing={URL})
    importer = AssetImporter(media_store, fetch=fetcher)
    first = importer.import_asset(URL, owning_post_id="5")
    second = importer.import_asset(URL, owning_post_id="5")
    assert second is first
    assert fetcher.calls == [URL]
    assert importer.failures == [first]


def test_store_failure_leaves_no_index_entry(fetcher):
    store = FakeMediaStore(fail_on={URL})
    importer = AssetImporter(store, fetch=fetcher)
    result = importer.import_asset(URL)
    assert isinstance(result, AssetFailure)
    assert result.kind == "store"
    assert store.lookup_by_source_url(URL) is None


def test_dry_run_plans_without_fetching(media_store, fetcher):
    importer = AssetImporter(media_store, fetch=fetcher, dry_run=True)
    result = importer.import_asset(URL)
    assert result.planned is True
    assert result.canonical_id is None
    assert result.canonical_url == URL
    assert fetcher.calls == []
    assert media_store.stored == []


def test_dry_run_reuses_known_assets(media_store, fetcher):
    AssetImporter(media_store, fetch=fetcher).import_asset(URL)
    planned = AssetImporter(media_store, fetch=fetcher, dry_run=True).import_asset(URL)
    assert planned.planned is False
    assert planned.canonical_id == "100"


def test_http_fetch_wraps_network_errors(monkeypatch):
    monkeypatch.setattr("squarespace_migrator.migrators.wordpress_migrator.time.sleep", lambda _s: None)

    class BrokenSession:
        def get(self, url, timeout=None):
            raise requests.ConnectionError("connection refused")

    fetch = http_fetch(BrokenSession())
    with pytest.raises(AssetFetchFailure):
        fetch(URL)
