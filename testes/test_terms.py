import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from squarespace_migrator.models import PostRecord
from squarespace_migrator.utils.terms import normalize_label, normalize_terms


def test_terms_html_entities_and_whitespace():
    assert normalize_terms(["Skin &amp; Body ", "  wellness  "]) == ["Skin & Body", "wellness"]


def test_terms_deduplicate_case_insensitive_preserve_first():
    assert normalize_terms(["Facials", "facials", "FACIALS", " Massage "]) == ["Facials", "Massage"]


def test_normalize_label_collapses_inner_whitespace():
    assert normalize_label("Spa\n   Theory") == "Spa Theory"
    assert normalize_label("") == ""


def test_post_record_normalizes_terms_and_slug():
    post = PostRecord(
        title="Winter Skin Care",
        raw_html="<p>x</p>",
        categories=["Skin &amp; Body", "skin & body"],
        tags=["Tips", ""],
        featured_asset_source_id="  ",
    )
    assert post.categories == ["Skin & Body"]
    assert post.tags == ["Tips"]
    assert post.slug == "winter-skin-care"
    assert post.featured_asset_source_id is None
