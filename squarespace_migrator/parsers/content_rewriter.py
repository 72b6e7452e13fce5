"""
Rewriting of asset references and internal links in exported post bodies.

Two passes run over the raw HTML of a post, assets first:

* every ``src`` pointing at the Squarespace CDN is imported through the
  :class:`~squarespace_migrator.migrators.asset_importer.AssetImporter`
  and replaced by the URL of the stored copy.  When the stored copy is the
  same file as the post's featured image, the ``<img>`` is dropped from
  the body instead, since the theme already shows the featured image.
* links into the old Squarespace blog are pointed at the new blog, and
  any remaining absolute URL of the old site is moved to the new origin.
"""

from __future__ import annotations

import posixpath
import re
from typing import Optional
from urllib.parse import urlparse

from squarespace_migrator.migrators.asset_importer import (
    AssetImporter,
    AssetResolver,
    is_failure,
    url_filename,
)
from squarespace_migrator.models import ImportedAsset
from squarespace_migrator.utils.errors import log_message

DEFAULT_MEDIA_HOST = "squarespace-cdn.com"


def blog_url(site_url: str, blog_path: str, slug: str) -> str:
    return f"{site_url.rstrip('/')}/{blog_path.strip('/')}/{slug}/"


def rewrite_links(
    html: str,
    *,
    legacy_origin: str,
    legacy_blog_path: str,
    site_url: str,
    blog_path: str = "/blog",
) -> str:
    """
    Point links at the legacy blog to the new blog and replace every other
    occurrence of ``legacy_origin`` by ``site_url``.

    ``href="/old-blog/my-post?ref=x"`` and
    ``href="https://old.example/old-blog/my-post"`` both become
    ``href="<site_url>/blog/my-post/"``.
    """
    if not html:
        return html
    origin = re.escape(legacy_origin.rstrip("/")) if legacy_origin else ""
    prefix = re.escape("/" + legacy_blog_path.strip("/"))
    pattern = re.compile(
        r'href="(?:' + origin + r")?" + prefix + r'/([^"?#]+)(?:[?#][^"]*)?"',
        re.IGNORECASE,
    )
    html = pattern.sub(
        lambda m: f'href="{blog_url(site_url, blog_path, m.group(1).strip("/"))}"',
        html,
    )
    if legacy_origin:
        html = html.replace(legacy_origin.rstrip("/"), site_url.rstrip("/"))
    return html


class ContentRewriter:
    """Rewrite the asset and link references of one post body at a time."""

    def __init__(
        self,
        resolver: AssetResolver,
        importer: AssetImporter,
        *,
        legacy_origin: str,
        legacy_blog_path: str,
        site_url: str,
        blog_path: str = "/blog",
        media_host: str = DEFAULT_MEDIA_HOST,
    ) -> None:
        self.resolver = resolver
        self.importer = importer
        self.legacy_origin = legacy_origin
        self.legacy_blog_path = legacy_blog_path
        self.site_url = site_url
        self.blog_path = blog_path
        self.media_src_re = re.compile(r'src="([^"]*' + re.escape(media_host) + r'[^"]*)"')

    def import_featured(self, featured_source_id: Optional[str], owning_post_id: Optional[str] = None) -> Optional[ImportedAsset]:
        url = self.resolver.resolve(featured_source_id)
        if not url:
            if featured_source_id:
                log_message(f"Featured image {featured_source_id} not found among attachments", level="WARNING")
            return None
        result = self.importer.import_asset(url, owning_post_id)
        return None if is_failure(result) else result

    def rewrite_assets(self, html: str, featured_source_id: Optional[str] = None, owning_post_id: Optional[str] = None) -> str:
        matches = self.media_src_re.findall(html or "")
        if not matches:
            return html

        featured = self.import_featured(featured_source_id, owning_post_id)
        featured_filename = url_filename(featured.canonical_url) if featured else None

        for image_url in dict.fromkeys(matches):
            result = self.importer.import_asset(image_url, owning_post_id)
            if is_failure(result):
                continue
            if featured_filename and url_filename(result.canonical_url) == featured_filename:
                name = re.escape(posixpath.basename(urlparse(image_url).path) or image_url)
                html = re.sub(r"<img[^>]*[/\"']" + name + r"(?=[\"'?#])[^>]*>", "", html, flags=re.IGNORECASE)
            else:
                html = html.replace(image_url, result.canonical_url)
        return html

    def rewrite_links(self, html: str) -> str:
        return rewrite_links(
            html,
            legacy_origin=self.legacy_origin,
            legacy_blog_path=self.legacy_blog_path,
            site_url=self.site_url,
            blog_path=self.blog_path,
        )

    def rewrite(self, raw_html: str, featured_source_id: Optional[str] = None, owning_post_id: Optional[str] = None) -> str:
        html = self.rewrite_assets(raw_html, featured_source_id, owning_post_id)
        return self.rewrite_links(html)
