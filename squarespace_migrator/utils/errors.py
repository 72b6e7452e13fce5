"""
Structured logging helpers and the error taxonomy for the migration.

The :mod:`squarespace_migrator.utils.errors` module centralizes the writing
of log entries for both failed and successful operations during the
migration.  Human-readable lines go to stdout and to ``migration.log``;
structured events are appended to JSON Lines files under the report
directory so that the information can be reviewed or parsed after a run.

Public helpers:

``log_message``
    Print a timestamped line and append it to the run log.

``report_error`` / ``report_ok``
    Record a failed or successful step for a post.

``configure_reporting``
    Point all of the above at another directory (tests use a temp dir).

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any, Dict, Optional


class MigrationError(Exception):
    """Base class for every failure raised by the migration pipeline."""


class SourceNotFound(MigrationError):
    """The export file does not exist."""


class ParseFailure(MigrationError):
    """The export document is not well-formed XML.  Always fatal."""


class AssetFetchFailure(MigrationError):
    """Downloading an asset from its source URL failed."""


class AssetStoreFailure(MigrationError):
    """Storing a downloaded asset in the media store failed."""


class PostValidationFailure(MigrationError):
    """A post is missing its title or body."""


class RepositoryWriteFailure(MigrationError):
    """Creating or updating a post in the content repository failed."""


# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "ASSET_FETCH": "Failed to download asset",
    "ASSET_STORE": "Failed to store asset in the media library",
    "POST_VALIDATION": "Post is missing its title or content",
    "REPOSITORY_WRITE": "Failed to create or update post",
    "TERMS": "Failed to assign taxonomy terms",
    "FEATURED_IMAGE": "Failed to set featured image",
    "DRY_RUN": "Dry-run: post would be imported",
    "POST_SAVED": "Post created or updated successfully",
}

_REPORT_DIR = os.path.join("reports", "migration")


def configure_reporting(report_dir: str) -> None:
    """Redirect the run log and the JSONL event logs to ``report_dir``."""
    global _REPORT_DIR
    _REPORT_DIR = report_dir


def report_dir() -> str:
    return _REPORT_DIR


def timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def log_message(message: str, level: str = "INFO") -> None:
    """Print ``message`` with a timestamp and append it to ``migration.log``."""
    log_entry = f"[{timestamp()}] {level}: {message}"
    print(log_entry)
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, "migration.log"), "a", encoding="utf-8") as f:
        f.write(log_entry + "\n")


def _write_jsonl(name: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``name``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, name), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def report_error(code: str, post: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
    """Log an error event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    post:
        A mapping describing the post.  Only the ``slug`` and ``title`` keys
        are referenced if present.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "slug": post.get("slug"),
        "title": post.get("title"),
        "timestamp": timestamp(),
    }
    if exc is not None:
        entry["error"] = str(exc)
    log_message(f"{message} - {post.get('slug', '')}", level="ERROR")
    _write_jsonl("errors.jsonl", entry)


def report_ok(code: str, post: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event for ``post``.

    ``extra`` is merged into the log entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "slug": post.get("slug"),
        "title": post.get("title"),
        "timestamp": timestamp(),
    }
    if extra:
        entry.update(extra)
    log_message(f"{message} - {post.get('slug', '')}", level="OK")
    _write_jsonl("success.jsonl", entry)
