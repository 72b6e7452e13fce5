"""
Generation of the end-of-run report files.

Four artifacts are written per run, all stamped with the run time so that
successive runs never overwrite each other:

* ``links_report_<ts>.csv`` – every link found in each processed post.
* ``import_report_<ts>.csv`` – old path → new path mapping with the status
  and the created post ID, usable to configure redirects.
* ``image_failures_<ts>.jsonl`` – assets that could not be imported.
* ``post_failures_<ts>.jsonl`` – posts that could not be imported.
"""

from __future__ import annotations

import csv
import json
import os
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, Optional

if TYPE_CHECKING:
    from squarespace_migrator.models import AssetFailure, LinkInventory, OutcomeRecord, PostFailure


def _stamp() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def write_links_report(inventories: Iterable["LinkInventory"], out_path: str) -> str:
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Title", "Slug", "TotalLinks", "Index", "Link"])
        for inventory in inventories:
            if not inventory.links:
                writer.writerow([inventory.title, inventory.slug, 0, "", ""])
            for index, link in enumerate(inventory.links, start=1):
                writer.writerow([inventory.title, inventory.slug, inventory.total_links, index, link])
    return out_path


def write_import_report(outcomes: Iterable["OutcomeRecord"], out_path: str) -> str:
    """Write the old URL → new URL mapping of every processed post."""
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Status", "Title", "PostID", "Slug", "OldURL", "NewURL", "LinksCount"])
        for outcome in outcomes:
            writer.writerow([
                outcome.status.upper(),
                outcome.title,
                outcome.created_id or "N/A",
                outcome.slug,
                outcome.source_path,
                outcome.target_path or "N/A",
                outcome.discovered_link_count,
            ])
    return out_path


def write_failures(failures: Iterable, out_path: str) -> str:
    """Write pydantic failure records as JSON Lines (an empty file means none)."""
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        for failure in failures:
            json.dump(failure.model_dump(), f, ensure_ascii=False)
            f.write("\n")
    return out_path


def write_reports(
    results_dir: str,
    *,
    inventories: Iterable["LinkInventory"],
    outcomes: Iterable["OutcomeRecord"],
    asset_failures: Iterable["AssetFailure"],
    post_failures: Iterable["PostFailure"],
    stamp: Optional[str] = None,
) -> Dict[str, str]:
    """Write all four reports into ``results_dir`` and return their paths."""
    stamp = stamp or _stamp()
    return {
        "links": write_links_report(inventories, os.path.join(results_dir, f"links_report_{stamp}.csv")),
        "import": write_import_report(outcomes, os.path.join(results_dir, f"import_report_{stamp}.csv")),
        "image_failures": write_failures(asset_failures, os.path.join(results_dir, f"image_failures_{stamp}.jsonl")),
        "post_failures": write_failures(post_failures, os.path.join(results_dir, f"post_failures_{stamp}.jsonl")),
    }
