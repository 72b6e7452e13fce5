"""
WordPress REST API helper functions for the Squarespace → WordPress migration.

This module implements low-level interactions with the WordPress REST API
(``/wp-json/wp/v2``).  Functions defined here upload media, manage the
blog taxonomies, create or update posts of the target post type, attach
featured images and look up authors.  Authentication uses an application
password (HTTP basic auth).  A simple rate limiter keeps the importer
from flooding shared hosting, and a generic retry wrapper handles
transient network errors and server-side throttling (429 or 5xx).

Usage example::

    from squarespace_migrator.migrators.wordpress_migrator import (
        create_or_update_post, assign_terms, set_featured_media
    )

    cfg = {"base_url": "https://example.com", "username": ..., "application_password": ...}
    post_id = create_or_update_post(cfg, {"title": "Hello", "slug": "hello", "content": "..."})
    assign_terms(cfg, post_id, ["News"], "blog-category")
    set_featured_media(cfg, post_id, 42)
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from squarespace_migrator.utils.errors import (
    AssetStoreFailure,
    RepositoryWriteFailure,
    log_message,
)

DEFAULT_TIMEOUT = 30

###############################################################################
# Rate limiting and retry utilities
###############################################################################

class RateLimiter:
    """
    Simple time-based rate limiter.  Ensures that no more than ``rpm``
    requests are dispatched per minute.
    """

    def __init__(self, rpm: int = 120) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / float(self.rpm)
        self._last = 0.0

    def wait(self, time_fn: Callable[[], float] = time.time, sleep_fn: Callable[[float], None] = time.sleep) -> None:
        now = time_fn()
        dt = now - self._last
        if dt < self.interval:
            sleep_fn(self.interval - dt)
        self._last = time_fn()


def with_retries(fn: Callable[[], requests.Response], *, max_attempts: int = 5, base_delay: float = 0.7) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors.  Backoff is exponential.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 0
            if status not in (429, 500, 502, 503, 504) or attempt >= max_attempts - 1:
                raise
            retry_after = e.response.headers.get("Retry-After")
            if retry_after:
                wait = float(retry_after)
            else:
                wait = base_delay * (2 ** attempt)
            time.sleep(wait)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            time.sleep(base_delay * (2 ** attempt))
            attempt += 1


_limiter = RateLimiter(120)


def api_url(cfg: Dict[str, Any], path: str) -> str:
    return f"{cfg['base_url'].rstrip('/')}/wp-json/wp/v2/{path.lstrip('/')}"


def wp_auth(cfg: Dict[str, Any]) -> Optional[tuple]:
    """Basic-auth tuple built from the configured application password."""
    if cfg.get("username") and cfg.get("application_password"):
        return (cfg["username"], cfg["application_password"])
    return None


def _request(cfg: Dict[str, Any], method: str, path: str, **kwargs: Any) -> requests.Response:
    timeout = kwargs.pop("timeout", DEFAULT_TIMEOUT)
    _limiter.wait()

    def do_request() -> requests.Response:
        return requests.request(
            method,
            api_url(cfg, path),
            auth=wp_auth(cfg),
            timeout=timeout,
            **kwargs,
        )

    return with_retries(do_request)


def _error_text(e: requests.RequestException) -> str:
    response = getattr(e, "response", None)
    if response is not None:
        return f"{response.status_code} {response.text[:300]}"
    return str(e)


###############################################################################
# Author helpers
###############################################################################

def find_author_by_email(cfg: Dict[str, Any], email: Optional[str]) -> Optional[int]:
    """
    Look up a WordPress user by email address.

    :return: The user ID, or ``None`` when no user matches.
    """
    if not email:
        return None
    try:
        resp = _request(cfg, "GET", "users", params={"search": email, "context": "edit"})
    except requests.RequestException as e:
        log_message(f"Failed to look up author {email}: {_error_text(e)}", level="WARNING")
        return None
    for user in resp.json() or []:
        if (user.get("email") or "").lower() == email.lower():
            return user.get("id")
    return None


###############################################################################
# Media helpers
###############################################################################

def upload_media(
    cfg: Dict[str, Any],
    data: bytes,
    filename: str,
    *,
    mime_type: Optional[str] = None,
    parent_post_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Upload raw bytes to the WordPress media library.

    :return: The media object returned by WordPress (``id``, ``source_url`` ...).
    :raises AssetStoreFailure: on any HTTP or network error.
    """
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Content-Type": mime_type or "application/octet-stream",
    }
    params = {"post": parent_post_id} if parent_post_id else None
    try:
        resp = _request(cfg, "POST", "media", headers=headers, data=data, params=params)
    except requests.RequestException as e:
        raise AssetStoreFailure(f"Import failed: {_error_text(e)}") from e
    media = resp.json() or {}
    if not media.get("id"):
        raise AssetStoreFailure(f"Import failed: media response without id for {filename}")
    return media


def delete_media(cfg: Dict[str, Any], media_id: int) -> None:
    _request(cfg, "DELETE", f"media/{media_id}", params={"force": "true"})


def get_media(cfg: Dict[str, Any], media_id: int) -> Dict[str, Any]:
    return _request(cfg, "GET", f"media/{media_id}").json()


###############################################################################
# Taxonomy helpers
###############################################################################

def get_or_create_terms(cfg: Dict[str, Any], taxonomy: str, labels: Iterable[str]) -> List[int]:
    """
    Ensure that the given term names exist in ``taxonomy`` and return their
    IDs.  Each label is searched by name first and created when missing.

    :return: Term IDs in label order, without duplicates.
    """
    ids: List[int] = []
    labels = [label.strip() for label in labels if label and label.strip()]
    for label in labels:
        term_id: Optional[int] = None
        try:
            resp = _request(cfg, "GET", taxonomy, params={"search": label, "per_page": 100})
            for term in resp.json() or []:
                if (term.get("name") or "").lower() == label.lower():
                    term_id = term.get("id")
                    break
            if term_id is None:
                resp = _request(cfg, "POST", taxonomy, json={"name": label})
                term_id = (resp.json() or {}).get("id")
        except requests.RequestException as e:
            response = getattr(e, "response", None)
            # WordPress answers 400 term_exists with the existing id when a race lost
            if response is not None and response.status_code == 400:
                try:
                    term_id = ((response.json() or {}).get("data") or {}).get("term_id")
                except ValueError:
                    term_id = None
            if term_id is None:
                log_message(f"Failed to create {taxonomy} term '{label}': {_error_text(e)}", level="ERROR")
                continue
        if term_id is not None and term_id not in ids:
            ids.append(term_id)
    return ids


def assign_terms(cfg: Dict[str, Any], post_id: int, labels: Iterable[str], taxonomy: str) -> List[int]:
    """Attach ``labels`` of ``taxonomy`` to the post, creating missing terms."""
    term_ids = get_or_create_terms(cfg, taxonomy, labels)
    if term_ids:
        _request(cfg, "POST", f"{cfg['post_type']}/{post_id}", json={taxonomy: term_ids})
    return term_ids


###############################################################################
# Post helpers
###############################################################################

def find_post_by_slug(cfg: Dict[str, Any], slug: str) -> Optional[int]:
    if not slug:
        return None
    resp = _request(cfg, "GET", cfg["post_type"], params={"slug": slug, "status": "any", "context": "edit"})
    posts = resp.json() or []
    return posts[0].get("id") if posts else None


def create_or_update_post(cfg: Dict[str, Any], fields: Dict[str, Any]) -> int:
    """
    Create a post of the configured post type, or update the existing post
    with the same slug so that re-runs do not duplicate content.

    ``fields`` uses the REST field names (``title``, ``content``,
    ``excerpt``, ``slug``, ``date``, ``status``, ``author``).

    :return: The post ID.
    :raises RepositoryWriteFailure: on failure.
    """
    try:
        existing = find_post_by_slug(cfg, fields.get("slug") or "")
        path = f"{cfg['post_type']}/{existing}" if existing else cfg["post_type"]
        resp = _request(cfg, "POST", path, json=fields)
    except requests.RequestException as e:
        raise RepositoryWriteFailure(f"Failed to create post: {_error_text(e)}") from e
    post_id = (resp.json() or {}).get("id")
    if not post_id:
        raise RepositoryWriteFailure("Post creation did not return an ID.")
    return post_id


def set_featured_media(cfg: Dict[str, Any], post_id: int, media_id: int) -> None:
    _request(cfg, "POST", f"{cfg['post_type']}/{post_id}", json={"featured_media": media_id})


class WordPressRepository:
    """
    Content repository and author directory backed by the REST helpers
    above.  The migration tool only talks to this object, so tests can
    swap in a fake with the same methods.
    """

    def __init__(self, cfg: Dict[str, Any]) -> None:
        self.cfg = cfg

    def create_or_update(self, fields: Dict[str, Any]) -> int:
        return create_or_update_post(self.cfg, fields)

    def assign_terms(self, post_id: int, term_names: Iterable[str], taxonomy: str) -> List[int]:
        return assign_terms(self.cfg, post_id, term_names, taxonomy)

    def set_primary_asset(self, post_id: int, asset_id) -> None:
        set_featured_media(self.cfg, post_id, int(asset_id))

    def find_author(self, author_ref: Optional[str]) -> Optional[int]:
        return find_author_by_email(self.cfg, author_ref)
