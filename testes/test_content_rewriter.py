import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from squarespace_migrator.migrators.asset_importer import AssetImporter, AssetResolver
from squarespace_migrator.models import AssetRecord
from squarespace_migrator.parsers.content_rewriter import ContentRewriter, blog_url, rewrite_links

CDN_URL = "https://images.squarespace-cdn.com/content/v1/abc/photo.jpg"
OTHER_URL = "https://images.squarespace-cdn.com/content/v1/abc/other.png"


def make_rewriter(media_store, fetcher, records=(), dry_run=False):
    importer = AssetImporter(media_store, fetch=fetcher, dry_run=dry_run)
    return ContentRewriter(
        AssetResolver(records),
        importer,
        legacy_origin="https://old.example",
        legacy_blog_path="/spa-blog",
        site_url="https://new.example",
        blog_path="/blog",
    )


def test_blog_url_normalizes_slashes():
    assert blog_url("https://new.example/", "/blog/", "my-post") == "https://new.example/blog/my-post/"


def test_relative_and_absolute_blog_links_point_at_new_blog():
    html = (
        '<a href="/spa-blog/my-post">a</a> '
        '<a href="https://old.example/spa-blog/my-post?utm_source=x">b</a>'
    )
    out = rewrite_links(
        html,
        legacy_origin="https://old.example",
        legacy_blog_path="/spa-blog",
        site_url="https://new.example",
    )
    assert out.count('href="https://new.example/blog/my-post/"') == 2


def test_other_legacy_urls_move_to_new_origin():
    out = rewrite_links(
        '<a href="https://old.example/about">About</a>',
        legacy_origin="https://old.example",
        legacy_blog_path="/spa-blog",
        site_url="https://new.example",
    )
    assert out == '<a href="https://new.example/about">About</a>'


def test_external_links_untouched():
    html = '<a href="https://elsewhere.example/spa-blog/post">x</a>'
    out = rewrite_links(
        html,
        legacy_origin="https://old.example",
        legacy_blog_path="/spa-blog",
        site_url="https://new.example",
    )
    assert out == html


def test_cdn_images_are_imported_and_replaced(media_store, fetcher):
    rewriter = make_rewriter(media_store, fetcher)
    html = f'<p><img src="{CDN_URL}?format=1500w" alt="x"></p>'
    out = rewriter.rewrite(html)
    assert "squarespace-cdn" not in out
    assert 'src="https://new.example/wp-content/uploads/photo.jpg"' in out
    assert len(media_store.stored) == 1


def test_repeated_image_is_imported_once(media_store, fetcher):
    rewriter = make_rewriter(media_store, fetcher)
    html = f'<img src="{OTHER_URL}"><img src="{OTHER_URL}">'
    out = rewriter.rewrite(html)
    assert out.count("https://new.example/wp-content/uploads/other.png") == 2
    assert fetcher.calls == [OTHER_URL]


def test_featured_image_is_removed_from_body(media_store, fetcher):
    rewriter = make_rewriter(media_store, fetcher, [AssetRecord(source_id="42", source_url=CDN_URL)])
    html = f'<p>Intro</p><img src="{CDN_URL}" alt="hero"><p>Body</p><img src="{CDN_URL}">'
    out = rewriter.rewrite(html, featured_source_id="42")
    assert "<img" not in out
    assert "<p>Intro</p>" in out
    assert len(media_store.stored) == 1


def test_featured_image_kept_when_body_has_other_images(media_store, fetcher):
    rewriter = make_rewriter(media_store, fetcher, [AssetRecord(source_id="42", source_url=CDN_URL)])
    out = rewriter.rewrite(f'<img src="{OTHER_URL}">', featured_source_id="42")
    assert out == '<img src="https://new.example/wp-content/uploads/other.png">'


def test_featured_filename_does_not_strip_longer_names(media_store, fetcher):
    hero = "https://images.squarespace-cdn.com/content/v1/abc/a.jpg"
    banana = "https://images.squarespace-cdn.com/content/v1/abc/banana.jpg"
    rewriter = make_rewriter(media_store, fetcher, [AssetRecord(source_id="42", source_url=hero)])
    out = rewriter.rewrite(f'<img src="{banana}"><p>x</p><img src="{hero}" alt="hero">', featured_source_id="42")
    assert out == '<img src="https://new.example/wp-content/uploads/banana.jpg"><p>x</p>'


def test_failed_image_keeps_original_url(media_store):
    from conftest import FakeFetcher

    fetcher = FakeFetcher(failing={CDN_URL})
    rewriter = make_rewriter(media_store, fetcher)
    out = rewriter.rewrite(f'<img src="{CDN_URL}">')
    assert CDN_URL in out
    assert len(rewriter.importer.failures) == 1


def test_dry_run_leaves_asset_urls_and_store_untouched(media_store, fetcher):
    rewriter = make_rewriter(media_store, fetcher, dry_run=True)
    out = rewriter.rewrite(f'<img src="{CDN_URL}"><a href="/spa-blog/next">n</a>')
    assert f'src="{CDN_URL}"' in out
    assert 'href="https://new.example/blog/next/"' in out
    assert media_store.stored == []
    assert fetcher.calls == []
