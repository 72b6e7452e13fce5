"""
Resolution and import of the assets referenced by exported posts.

:class:`AssetResolver` maps the attachment IDs declared in the export to
their Squarespace CDN URLs.  :class:`AssetImporter` turns such a URL into
an asset stored in the media library, downloading every distinct URL at
most once per run: the media store is asked first, and only a miss that
has not already failed triggers a download.  Import results are returned
as values (:class:`ImportedAsset` or :class:`AssetFailure`) so callers
cannot lose a failure by catching too broadly; every failure is also kept
in :attr:`AssetImporter.failures` for the end-of-run report.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import unquote, urlparse

import filetype
import requests

from squarespace_migrator.extractors.squarespace_extractor import ExportItem, attachment_fields
from squarespace_migrator.migrators.wordpress_migrator import DEFAULT_TIMEOUT, with_retries
from squarespace_migrator.models import AssetFailure, AssetRecord, ImportedAsset
from squarespace_migrator.utils.errors import AssetFetchFailure, AssetStoreFailure, log_message

ImportResult = Union[ImportedAsset, AssetFailure]

MIME_EXTENSIONS: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
DEFAULT_EXTENSION = ".webp"


class AssetResolver:
    """Read-only map of attachment source IDs to their source URLs."""

    def __init__(self, records: Iterable[AssetRecord] = ()) -> None:
        self._urls: Dict[str, str] = {}
        for record in records:
            # a later declaration of the same id replaces the earlier one
            self._urls[record.source_id] = record.source_url

    @classmethod
    def from_items(cls, items: Iterable[ExportItem]) -> "AssetResolver":
        records: List[AssetRecord] = []
        for item in items:
            if not item.is_attachment:
                continue
            source_id, url = attachment_fields(item)
            if source_id and url:
                records.append(AssetRecord(source_id=source_id, source_url=url))
        return cls(records)

    def resolve(self, source_id: Optional[str]) -> Optional[str]:
        if not source_id:
            return None
        return self._urls.get(source_id)

    def __len__(self) -> int:
        return len(self._urls)


def extension_for(data: bytes) -> str:
    """Sniff ``data`` and return the matching file extension (with dot)."""
    kind = filetype.guess(data) if data else None
    if kind is not None:
        return MIME_EXTENSIONS.get(kind.mime, DEFAULT_EXTENSION)
    return DEFAULT_EXTENSION


def url_filename(url: str) -> str:
    """Last path segment of ``url``, percent-decoded, without query string."""
    return unquote(os.path.basename(urlparse(url).path))


def filename_for(url: str, data: bytes) -> str:
    """
    Pick the media library filename for an asset: the last URL path
    segment, plus a sniffed extension when the segment has none.
    """
    name = url_filename(url) or "image"
    if not os.path.splitext(name)[1]:
        name += extension_for(data)
    return name


def http_fetch(session: Optional[requests.Session] = None) -> Callable[[str], bytes]:
    """Build the default downloader used by :class:`AssetImporter`."""
    session = session or requests.Session()

    def fetch(url: str) -> bytes:
        try:
            resp = with_retries(lambda: session.get(url, timeout=DEFAULT_TIMEOUT))
        except requests.RequestException as e:
            raise AssetFetchFailure(f"Download failed: {e}") from e
        return resp.content

    return fetch


class AssetImporter:
    """
    Import assets by source URL into a media store.

    The media store must provide ``lookup_by_source_url(url)`` and
    ``store(data, filename, *, source_url, mime_type, owning_post_id)``,
    both returning :class:`ImportedAsset` (or ``None`` for a lookup miss).

    With ``dry_run`` enabled nothing is downloaded or stored: a lookup miss
    yields a ``planned`` asset that still points at the source URL.
    """

    def __init__(
        self,
        media_store,
        *,
        fetch: Optional[Callable[[str], bytes]] = None,
        dry_run: bool = False,
    ) -> None:
        self.media_store = media_store
        self.fetch = fetch or http_fetch()
        self.dry_run = dry_run
        self.failures: List[AssetFailure] = []
        self._failed: Dict[str, AssetFailure] = {}

    def _fail(self, url: str, owning_post_id: Optional[str], reason: str, kind: str) -> AssetFailure:
        failure = AssetFailure(source_url=url, owning_post_id=owning_post_id, reason=reason, kind=kind)
        self.failures.append(failure)
        self._failed[url] = failure
        log_message(f"Failed to import image: {url} - {reason}", level="WARNING")
        return failure

    def import_asset(self, source_url: str, owning_post_id: Optional[str] = None) -> ImportResult:
        existing = self.media_store.lookup_by_source_url(source_url)
        if existing is not None:
            return existing

        if self.dry_run:
            return ImportedAsset(
                canonical_url=source_url,
                source_url=source_url,
                filename=url_filename(source_url),
                planned=True,
            )

        # a URL that already failed in this run is not downloaded again
        if source_url in self._failed:
            return self._failed[source_url]

        try:
            data = self.fetch(source_url)
        except AssetFetchFailure as e:
            return self._fail(source_url, owning_post_id, str(e), "fetch")

        filename = filename_for(source_url, data)
        kind = filetype.guess(data) if data else None
        try:
            return self.media_store.store(
                data,
                filename,
                source_url=source_url,
                mime_type=kind.mime if kind is not None else None,
                owning_post_id=owning_post_id,
            )
        except AssetStoreFailure as e:
            return self._fail(source_url, owning_post_id, str(e), "store")


def is_failure(result: Optional[ImportResult]) -> bool:
    return result is None or isinstance(result, AssetFailure)
