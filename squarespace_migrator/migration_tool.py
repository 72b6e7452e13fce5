"""
High-level orchestration of the Squarespace → WordPress migration.

This module defines a :class:`SquarespaceMigrationTool` class that ties
together the extractor, the asset importer, the content rewriter, the
block converter and the WordPress REST helpers into a complete pipeline.

A run reads the export twice: the first pass collects every attachment
into an :class:`AssetResolver`, the second walks the blog posts in export
order inside the configured ``offset``/``limit`` window.  Each post is
rewritten, converted to block markup and (unless ``dry_run`` is set)
saved, tagged and given its featured image before the next post starts.
Failures of a single post or asset are recorded and the run continues;
only an unreadable export aborts it.  Every run ends with a summary line
and the report files, whatever happened to the individual posts.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``wordpress`` section holds the REST credentials and the
target post type and taxonomies; the ``migration`` section holds the run
window, the old and new site URLs and the output locations.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from squarespace_migrator.extractors.squarespace_extractor import (
    discover_links,
    extract_post,
    iter_items,
    load_export,
)
from squarespace_migrator.migrators.asset_importer import AssetImporter, AssetResolver
from squarespace_migrator.migrators.media_store import AssetIndex, WordPressMediaStore
from squarespace_migrator.migrators.wordpress_migrator import WordPressRepository
from squarespace_migrator.models import (
    AssetFailure,
    LinkInventory,
    OutcomeRecord,
    PostFailure,
    PostRecord,
)
from squarespace_migrator.parsers.block_parser import convert_html_to_blocks
from squarespace_migrator.parsers.content_rewriter import ContentRewriter, blog_url
from squarespace_migrator.utils import errors
from squarespace_migrator.utils.errors import (
    MigrationError,
    PostValidationFailure,
    RepositoryWriteFailure,
    report_error,
    report_ok,
)
from squarespace_migrator.utils.reports import write_reports


@dataclass
class MigrationResult:
    outcomes: List[OutcomeRecord] = field(default_factory=list)
    link_inventory: List[LinkInventory] = field(default_factory=list)
    asset_failures: List[AssetFailure] = field(default_factory=list)
    post_failures: List[PostFailure] = field(default_factory=list)
    documents: Dict[str, str] = field(default_factory=dict)
    report_paths: Dict[str, str] = field(default_factory=dict)
    attachments_found: int = 0
    stopped: bool = False

    def summary(self) -> Dict[str, int]:
        counts = {"dry_run": 0, "success": 0, "failed": 0}
        for outcome in self.outcomes:
            counts[outcome.status] += 1
        counts["asset_failures"] = len(self.asset_failures)
        counts["post_failures"] = len(self.post_failures)
        return counts


class SquarespaceMigrationTool:
    """
    Encapsulates all state and behavior required to migrate the blog posts
    of a Squarespace export into WordPress.

    ``repository`` (content repository + author directory), ``media_store``
    and ``fetch`` (asset downloader) default to the WordPress REST
    implementations and can be replaced, which is how the tests run the
    pipeline without a network.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        repository=None,
        media_store=None,
        fetch=None,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("wordpress", {})
        config["wordpress"].setdefault("base_url", os.getenv("WP_BASE_URL", ""))
        config["wordpress"].setdefault("username", os.getenv("WP_USERNAME", ""))
        config["wordpress"].setdefault("application_password", os.getenv("WP_APPLICATION_PASSWORD", ""))
        config["wordpress"].setdefault("post_type", "blog")
        config["wordpress"].setdefault("category_taxonomy", "blog-category")
        config["wordpress"].setdefault("tag_taxonomy", "blog-tag")
        config["wordpress"].setdefault("default_author_id", 1)

        config.setdefault("migration", {})
        config["migration"].setdefault("xml_file", "data/squarespace-export.xml")
        config["migration"].setdefault("dry_run", True)
        config["migration"].setdefault("limit", 10)
        config["migration"].setdefault("offset", 0)
        config["migration"].setdefault("legacy_domain", "")
        config["migration"].setdefault("legacy_blog_path", "/blog")
        config["migration"].setdefault("site_url", config["wordpress"]["base_url"])
        config["migration"].setdefault("blog_path", "/blog")
        config["migration"].setdefault("media_host", "squarespace-cdn.com")
        config["migration"].setdefault("container_class", "sqs-html-content")
        config["migration"].setdefault("results_dir", "results")
        config["migration"].setdefault("report_dir", os.path.join("reports", "migration"))
        config["migration"].setdefault("asset_index", os.path.join("data", "migration.duckdb"))

        self.config = config
        errors.configure_reporting(config["migration"]["report_dir"])

        self._repository = repository
        self._media_store = media_store
        self._fetch = fetch
        self._index: Optional[AssetIndex] = None

    # ------------------------------------------------------------------
    # configuration helpers
    # ------------------------------------------------------------------
    @property
    def migration(self) -> Dict[str, Any]:
        return self.config["migration"]

    @property
    def dry_run(self) -> bool:
        return bool(self.migration.get("dry_run"))

    def log_message(self, message: str, level: str = "INFO") -> None:
        errors.log_message(message, level=level)

    def source_path(self, slug: str) -> str:
        return f"/{self.migration['legacy_blog_path'].strip('/')}/{slug}"

    def target_path(self, slug: str) -> str:
        return blog_url(self.migration["site_url"], self.migration["blog_path"], slug)

    def repository(self):
        if self._repository is None:
            self._repository = WordPressRepository(self.config["wordpress"])
        return self._repository

    def open_index(self) -> AssetIndex:
        """
        Open the asset index.  A dry run only reads an existing index and
        falls back to an empty in-memory one, so it never creates the file.
        """
        path = self.migration["asset_index"]
        if not self.dry_run:
            return AssetIndex(path)
        if os.path.exists(path):
            return AssetIndex(path, read_only=True)
        return AssetIndex(":memory:")

    def media_store(self):
        if self._media_store is None:
            self._index = self.open_index()
            self._media_store = WordPressMediaStore(self.config["wordpress"], self._index)
        return self._media_store

    def close(self) -> None:
        """Close the asset index opened by :meth:`media_store`, if any."""
        if self._index is not None:
            self._index.close()
            self._index = None
            self._media_store = None

    # ------------------------------------------------------------------
    # pipeline
    # ------------------------------------------------------------------
    def build_rewriter(self, resolver: AssetResolver, importer: AssetImporter) -> ContentRewriter:
        return ContentRewriter(
            resolver,
            importer,
            legacy_origin=self.migration["legacy_domain"],
            legacy_blog_path=self.migration["legacy_blog_path"],
            site_url=self.migration["site_url"],
            blog_path=self.migration["blog_path"],
            media_host=self.migration["media_host"],
        )

    def transform(self, rewriter: ContentRewriter, post: PostRecord) -> str:
        """Rewrite assets and links of ``post`` and convert it to blocks."""
        rewritten = rewriter.rewrite(post.raw_html, post.featured_asset_source_id)
        return convert_html_to_blocks(rewritten, container_class=self.migration["container_class"])

    def _post_fields(self, post: PostRecord, content: str, author_id: Any) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "title": post.title,
            "content": content,
            "excerpt": post.excerpt,
            "slug": post.slug,
            "status": post.status,
            "author": author_id,
        }
        if post.date:
            fields["date"] = post.date.replace(" ", "T")
        return fields

    def _fail_post(self, result: MigrationResult, post: PostRecord, exc: BaseException, kind: str, code: str) -> OutcomeRecord:
        result.post_failures.append(
            PostFailure(
                title=post.title,
                slug=post.slug,
                source_path=self.source_path(post.slug),
                reason=str(exc),
                kind=kind,
            )
        )
        report_error(code, {"slug": post.slug, "title": post.title}, exc)
        return OutcomeRecord(
            status="failed",
            title=post.title,
            slug=post.slug,
            source_path=self.source_path(post.slug),
            discovered_link_count=len(result.link_inventory[-1].links) if result.link_inventory else 0,
        )

    def process_post(self, post: PostRecord, rewriter: ContentRewriter, result: MigrationResult) -> OutcomeRecord:
        """Run one post through the pipeline and return its outcome."""
        links = discover_links(post.raw_html)
        result.link_inventory.append(LinkInventory(title=post.title, slug=post.slug, links=links))
        info = {"slug": post.slug, "title": post.title}

        try:
            if not post.title or not post.raw_html.strip():
                raise PostValidationFailure(f"Post content is empty for: {post.title or post.slug}")

            if self.dry_run:
                result.documents[post.slug] = self.transform(rewriter, post)
                report_ok("DRY_RUN", info, {"new_url": self.target_path(post.slug)})
                return OutcomeRecord(
                    status="dry_run",
                    title=post.title,
                    slug=post.slug,
                    source_path=self.source_path(post.slug),
                    target_path=self.target_path(post.slug),
                    discovered_link_count=len(links),
                )

            repository = self.repository()
            wp = self.config["wordpress"]
            author_id = repository.find_author(post.author_ref) or wp["default_author_id"]
            content = self.transform(rewriter, post)
            result.documents[post.slug] = content
            post_id = repository.create_or_update(self._post_fields(post, content, author_id))

            for labels, taxonomy in ((post.categories, wp["category_taxonomy"]), (post.tags, wp["tag_taxonomy"])):
                if not labels:
                    continue
                try:
                    repository.assign_terms(post_id, labels, taxonomy)
                except Exception as e:
                    report_error("TERMS", info, e)

            if post.featured_asset_source_id:
                featured = rewriter.import_featured(post.featured_asset_source_id, owning_post_id=str(post_id))
                if featured is not None and featured.canonical_id:
                    try:
                        repository.set_primary_asset(post_id, featured.canonical_id)
                    except Exception as e:
                        report_error("FEATURED_IMAGE", info, e)

            report_ok("POST_SAVED", info, {"post_id": post_id, "new_url": self.target_path(post.slug)})
            return OutcomeRecord(
                status="success",
                title=post.title,
                slug=post.slug,
                source_path=self.source_path(post.slug),
                target_path=self.target_path(post.slug),
                created_id=str(post_id),
                discovered_link_count=len(links),
            )
        except PostValidationFailure as e:
            return self._fail_post(result, post, e, "validation", "POST_VALIDATION")
        except RepositoryWriteFailure as e:
            return self._fail_post(result, post, e, "repository", "REPOSITORY_WRITE")
        except Exception as e:
            self.log_message(f"An unexpected error occurred while migrating post '{post.slug}': {e}", "ERROR")
            return self._fail_post(result, post, e, "unexpected", "REPOSITORY_WRITE")

    def run(self, xml_path: Optional[str] = None, *, stop_event=None) -> MigrationResult:
        """
        Migrate the posts of the export at ``xml_path`` (defaults to the
        configured ``xml_file``).

        ``stop_event`` is any object with an ``is_set()`` method (for
        example :class:`threading.Event`); it is checked between posts.

        :raises SourceNotFound: if the export does not exist.
        :raises ParseFailure: if the export is not well-formed XML.
        """
        xml_path = xml_path or self.migration["xml_file"]
        limit: Optional[int] = self.migration.get("limit")
        offset: int = int(self.migration.get("offset") or 0)
        end = None if limit is None else offset + int(limit)

        self.log_message(
            f"Starting import - Dry Run: {'YES' if self.dry_run else 'NO'}, Offset: {offset}, Limit: {limit}"
        )
        try:
            root = load_export(xml_path)
        except MigrationError as e:
            self.log_message(f"Import failed: {e}", "ERROR")
            raise
        self.log_message("XML loaded successfully")

        items = list(iter_items(root))
        resolver = AssetResolver.from_items(items)
        self.log_message(f"Found {len(resolver)} attachments")

        importer = AssetImporter(self.media_store(), fetch=self._fetch, dry_run=self.dry_run)
        rewriter = self.build_rewriter(resolver, importer)
        result = MigrationResult(attachments_found=len(resolver))

        processed = 0
        try:
            for item in items:
                if end is not None and processed >= end:
                    break
                if not item.is_post:
                    continue
                if stop_event is not None and stop_event.is_set():
                    self.log_message("Stop requested; ending the run before the next post.", "WARNING")
                    result.stopped = True
                    break
                if processed < offset:
                    processed += 1
                    continue
                processed += 1

                post = extract_post(item)
                self.log_message(f"Processing {processed}/{end if end is not None else '?'}: {post.title}")
                result.outcomes.append(self.process_post(post, rewriter, result))

            result.asset_failures = list(importer.failures)
            result.report_paths = write_reports(
                self.migration["results_dir"],
                inventories=result.link_inventory,
                outcomes=result.outcomes,
                asset_failures=result.asset_failures,
                post_failures=result.post_failures,
            )
        finally:
            self.close()

        summary = result.summary()
        self.log_message(
            "Import results - Successful: {success}, Dry run: {dry_run}, Failed: {failed}, "
            "Asset failures: {asset_failures}".format(**summary)
        )
        for name, path in result.report_paths.items():
            self.log_message(f"Report written ({name}): {path}")
        return result
