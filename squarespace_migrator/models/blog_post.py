from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from squarespace_migrator.utils.errors import timestamp
from squarespace_migrator.utils.terms import normalize_terms


def _slugify(value: str) -> str:
    text = value.strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        else:
            if not prev_dash:
                out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug[:200]


class AssetRecord(BaseModel):
    """An attachment declared in the export, keyed by its source id."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    source_url: str


class ImportedAsset(BaseModel):
    """
    An asset known to the media store.  ``planned`` assets come from
    dry runs: they were looked up but never downloaded or stored, so
    their ``canonical_url`` is still the source URL.
    """

    model_config = ConfigDict(frozen=True)

    canonical_id: Optional[str] = None
    canonical_url: str
    source_url: str
    filename: str = ""
    planned: bool = False


class AssetFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_url: str
    owning_post_id: Optional[str] = None
    reason: str
    kind: Literal["fetch", "store", "resolve"] = "fetch"
    timestamp: str = Field(default_factory=timestamp)


class PostRecord(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str = ""
    raw_html: str = ""
    excerpt: str = ""
    slug: str = Field("", validate_default=True)
    date: Optional[str] = None
    status: str = "publish"
    author_ref: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    featured_asset_source_id: Optional[str] = None

    @field_validator("slug", mode="after")
    @classmethod
    def _ensure_slug(cls, v: str, info):
        if v:
            return v
        title = info.data.get("title")
        if isinstance(title, str) and title.strip():
            return _slugify(title)
        return v

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def _dedup_terms(cls, v):
        if not v:
            return []
        return normalize_terms(v)

    @field_validator("featured_asset_source_id", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PostFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    slug: str
    source_path: str
    reason: str
    kind: Literal["validation", "repository", "unexpected"] = "repository"
    timestamp: str = Field(default_factory=timestamp)


class OutcomeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["dry_run", "success", "failed"]
    title: str
    slug: str
    source_path: str
    target_path: Optional[str] = None
    created_id: Optional[str] = None
    discovered_link_count: int = 0


class LinkInventory(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    slug: str
    links: list[str] = Field(default_factory=list)

    @property
    def total_links(self) -> int:
        return len(self.links)
