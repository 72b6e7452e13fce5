"""
Reading of Squarespace blog exports.

Squarespace exports blogs as a WordPress-flavoured RSS document (WXR 1.2).
Each ``<item>`` carries a ``wp:post_type`` discriminator: ``post`` items are
blog posts, ``attachment`` items are media library entries whose
``wp:post_id`` is referenced from posts through the ``_thumbnail_id`` meta
key.
"""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup

from squarespace_migrator.models import PostRecord
from squarespace_migrator.utils.errors import ParseFailure, SourceNotFound

NAMESPACES = {
    "wp": "http://wordpress.org/export/1.2/",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "excerpt": "http://wordpress.org/export/1.2/excerpt/",
    "dc": "http://purl.org/dc/elements/1.1/",
}

POST_TYPE = "post"
ATTACHMENT_TYPE = "attachment"
FEATURED_IMAGE_META_KEY = "_thumbnail_id"


@dataclass(frozen=True)
class ExportItem:
    post_type: str
    element: ET.Element

    @property
    def is_post(self) -> bool:
        return self.post_type == POST_TYPE

    @property
    def is_attachment(self) -> bool:
        return self.post_type == ATTACHMENT_TYPE


def _text(element: ET.Element, path: str) -> str:
    found = element.find(path, NAMESPACES)
    if found is None or found.text is None:
        return ""
    return found.text


def load_export(file_path: str) -> ET.Element:
    """Parse the export file and return its root element.

    Raises:
        SourceNotFound: if ``file_path`` does not exist.
        ParseFailure: if the document is not well-formed XML.
    """
    if not os.path.exists(file_path):
        raise SourceNotFound(f"XML file not found: {file_path}")
    try:
        tree = ET.parse(file_path)
    except ET.ParseError as e:
        raise ParseFailure(f"XML parse error in {file_path}: {e}") from e
    return tree.getroot()


def parse_export_string(document: str) -> ET.Element:
    try:
        return ET.fromstring(document)
    except ET.ParseError as e:
        raise ParseFailure(f"XML parse error: {e}") from e


def iter_items(root: ET.Element) -> Iterator[ExportItem]:
    """Yield every ``<item>`` of the channel in document order."""
    for item in root.iter("item"):
        yield ExportItem(post_type=_text(item, "wp:post_type").strip(), element=item)


def extract_post(item: ExportItem) -> PostRecord:
    """Build a :class:`PostRecord` from a ``post`` item."""
    element = item.element
    categories: List[str] = []
    tags: List[str] = []
    for cat_element in element.findall("category"):
        term = cat_element.text or ""
        domain = cat_element.get("domain")
        if domain == "category":
            categories.append(term)
        elif domain == "post_tag":
            tags.append(term)

    featured_id: Optional[str] = None
    for meta in element.findall("wp:postmeta", NAMESPACES):
        if _text(meta, "wp:meta_key") == FEATURED_IMAGE_META_KEY:
            featured_id = _text(meta, "wp:meta_value").strip() or None
            break

    return PostRecord(
        title=_text(element, "title"),
        raw_html=_text(element, "content:encoded"),
        excerpt=_text(element, "excerpt:encoded"),
        slug=_text(element, "wp:post_name"),
        date=_text(element, "wp:post_date") or None,
        status=_text(element, "wp:status") or "publish",
        author_ref=_text(element, "dc:creator") or None,
        categories=categories,
        tags=tags,
        featured_asset_source_id=featured_id,
    )


def attachment_fields(item: ExportItem) -> tuple[str, str]:
    """Return ``(post_id, attachment_url)`` for an ``attachment`` item."""
    element = item.element
    return _text(element, "wp:post_id").strip(), _text(element, "wp:attachment_url").strip()


def discover_links(html: str) -> List[str]:
    """Return every ``href`` target found in ``html``, in document order."""
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    for el in soup.find_all(href=True):
        href = el.get("href")
        if isinstance(href, list):
            href = " ".join(href)
        if href:
            links.append(href)
    return links
