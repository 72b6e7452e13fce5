"""
Media store used by the asset importer.

Imported assets are remembered in a small DuckDB database keyed by their
original URL.  That index is the only thing the importer consults before
downloading, so an entry must exist only for assets that were stored
completely: :meth:`WordPressMediaStore.store` writes the index row after
the upload succeeded and removes the uploaded file again when the index
write fails.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any, Dict, Optional

import duckdb
import requests

from squarespace_migrator.migrators.wordpress_migrator import delete_media, get_media, upload_media
from squarespace_migrator.models import ImportedAsset
from squarespace_migrator.utils.errors import AssetStoreFailure, log_message

TABLE_NAME = "imported_assets"


class AssetIndex:
    """Exact-match index of imported assets by their source URL."""

    def __init__(self, db_path: str = ":memory:", read_only: bool = False) -> None:
        self.db_path = db_path
        if read_only:
            self.con = duckdb.connect(database=db_path, read_only=True)
            return
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self.con = duckdb.connect(database=db_path, read_only=False)
        self.con.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                source_url VARCHAR PRIMARY KEY,
                canonical_id VARCHAR NOT NULL,
                canonical_url VARCHAR NOT NULL,
                filename VARCHAR,
                owning_post_id VARCHAR,
                created_at TIMESTAMP
            )
            """
        )

    def lookup(self, source_url: str) -> Optional[ImportedAsset]:
        row = self.con.execute(
            f"SELECT canonical_id, canonical_url, filename FROM {TABLE_NAME} WHERE source_url = ?",
            [source_url],
        ).fetchone()
        if row is None:
            return None
        return ImportedAsset(canonical_id=row[0], canonical_url=row[1], source_url=source_url, filename=row[2] or "")

    def lookup_by_id(self, canonical_id: str) -> Optional[ImportedAsset]:
        row = self.con.execute(
            f"SELECT source_url, canonical_url, filename FROM {TABLE_NAME} WHERE canonical_id = ? LIMIT 1",
            [canonical_id],
        ).fetchone()
        if row is None:
            return None
        return ImportedAsset(canonical_id=canonical_id, canonical_url=row[1], source_url=row[0], filename=row[2] or "")

    def record(self, asset: ImportedAsset, owning_post_id: Optional[str] = None) -> None:
        self.con.execute(
            f"INSERT INTO {TABLE_NAME} VALUES (?, ?, ?, ?, ?, ?)",
            [
                asset.source_url,
                asset.canonical_id,
                asset.canonical_url,
                asset.filename,
                owning_post_id,
                datetime.now(),
            ],
        )

    def forget(self, source_url: str) -> None:
        self.con.execute(f"DELETE FROM {TABLE_NAME} WHERE source_url = ?", [source_url])

    def count(self) -> int:
        return self.con.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0]

    def close(self) -> None:
        self.con.close()


class WordPressMediaStore:
    """
    Media store capability backed by the WordPress media library and an
    :class:`AssetIndex`.

    ``store`` returns the stored :class:`ImportedAsset`; its
    ``canonical_id`` is the WordPress attachment ID as a string.
    """

    def __init__(self, cfg: Dict[str, Any], index: AssetIndex) -> None:
        self.cfg = cfg
        self.index = index

    def lookup_by_source_url(self, source_url: str) -> Optional[ImportedAsset]:
        return self.index.lookup(source_url)

    def url_for(self, canonical_id: str) -> Optional[str]:
        known = self.index.lookup_by_id(canonical_id)
        if known is not None:
            return known.canonical_url
        return get_media(self.cfg, int(canonical_id)).get("source_url")

    def store(
        self,
        data: bytes,
        filename: str,
        *,
        source_url: str,
        mime_type: Optional[str] = None,
        owning_post_id: Optional[str] = None,
    ) -> ImportedAsset:
        media = upload_media(
            self.cfg,
            data,
            filename,
            mime_type=mime_type,
            parent_post_id=int(owning_post_id) if owning_post_id else None,
        )
        canonical_url = media.get("source_url") or ""
        asset = ImportedAsset(
            canonical_id=str(media["id"]),
            canonical_url=canonical_url,
            source_url=source_url,
            filename=os.path.basename(canonical_url) or filename,
        )
        try:
            self.index.record(asset, owning_post_id=owning_post_id)
        except duckdb.Error as e:
            log_message(f"Rolling back upload of {source_url}: {e}", level="WARNING")
            try:
                delete_media(self.cfg, media["id"])
            except requests.RequestException as cleanup_error:
                log_message(f"Could not delete orphaned media {media['id']}: {cleanup_error}", level="ERROR")
            raise AssetStoreFailure(f"Could not record original URL for {source_url}: {e}") from e
        return asset
