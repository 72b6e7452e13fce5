import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
import requests

from squarespace_migrator.migrators import wordpress_migrator as wp
from squarespace_migrator.utils.errors import RepositoryWriteFailure

CFG = {"base_url": "https://new.example/", "username": "u", "application_password": "p", "post_type": "blog"}


def make_response(status, payload=None):
    resp = requests.Response()
    resp.status_code = status
    resp._content = b"{}" if payload is None else json.dumps(payload).encode()
    return resp


class FakeJson:
    def __init__(self, payload):
        self.payload = payload

    def json(self):
        return self.payload


def test_api_url_and_auth():
    assert wp.api_url(CFG, "/media") == "https://new.example/wp-json/wp/v2/media"
    assert wp.wp_auth(CFG) == ("u", "p")
    assert wp.wp_auth({"base_url": "x"}) is None


def test_rate_limiter_sleeps_until_interval_passed():
    limiter = wp.RateLimiter(rpm=60)
    clock = iter([100.0, 100.0, 100.5, 101.0])
    slept = []
    limiter.wait(time_fn=lambda: next(clock), sleep_fn=slept.append)
    limiter.wait(time_fn=lambda: next(clock), sleep_fn=slept.append)
    assert slept == [0.5]


def test_with_retries_retries_server_errors(monkeypatch):
    monkeypatch.setattr(wp.time, "sleep", lambda _s: None)
    responses = iter([make_response(503), make_response(200, {"ok": True})])
    resp = wp.with_retries(lambda: next(responses))
    assert resp.json() == {"ok": True}


def test_with_retries_does_not_retry_client_errors(monkeypatch):
    monkeypatch.setattr(wp.time, "sleep", lambda _s: None)
    calls = []

    def fn():
        calls.append(1)
        return make_response(404)

    with pytest.raises(requests.HTTPError):
        wp.with_retries(fn)
    assert len(calls) == 1


def test_get_or_create_terms_reuses_and_creates(monkeypatch):
    calls = []

    def fake_request(cfg, method, path, **kwargs):
        calls.append((method, path, kwargs.get("params") or kwargs.get("json")))
        if method == "GET":
            if kwargs["params"]["search"] == "Skin":
                return FakeJson([{"id": 3, "name": "skin"}])
            return FakeJson([])
        return FakeJson({"id": 9})

    monkeypatch.setattr(wp, "_request", fake_request)
    assert wp.get_or_create_terms(CFG, "blog-category", ["Skin", "Winter", " "]) == [3, 9]
    assert ("POST", "blog-category", {"name": "Winter"}) in calls


def test_get_or_create_terms_uses_existing_id_on_conflict(monkeypatch):
    def fake_request(cfg, method, path, **kwargs):
        if method == "GET":
            return FakeJson([])
        err = requests.HTTPError("400")
        err.response = make_response(400, {"code": "term_exists", "data": {"term_id": 12}})
        raise err

    monkeypatch.setattr(wp, "_request", fake_request)
    assert wp.get_or_create_terms(CFG, "blog-tag", ["Winter"]) == [12]


def test_create_or_update_post_updates_existing_slug(monkeypatch):
    calls = []

    def fake_request(cfg, method, path, **kwargs):
        calls.append((method, path))
        if method == "GET":
            return FakeJson([{"id": 55}])
        return FakeJson({"id": 55})

    monkeypatch.setattr(wp, "_request", fake_request)
    assert wp.create_or_update_post(CFG, {"slug": "winter-skin", "title": "T"}) == 55
    assert calls == [("GET", "blog"), ("POST", "blog/55")]


def test_create_or_update_post_raises_repository_failure(monkeypatch):
    def fake_request(cfg, method, path, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(wp, "_request", fake_request)
    with pytest.raises(RepositoryWriteFailure):
        wp.create_or_update_post(CFG, {"slug": "x"})


def test_find_author_by_email_matches_case_insensitively(monkeypatch):
    monkeypatch.setattr(
        wp,
        "_request",
        lambda cfg, method, path, **kw: FakeJson([{"id": 2, "email": "other@x"}, {"id": 7, "email": "Owner@Old.Example"}]),
    )
    assert wp.find_author_by_email(CFG, "owner@old.example") == 7
    assert wp.find_author_by_email(CFG, None) is None


def test_repository_sets_featured_media_as_int(monkeypatch):
    sent = []
    monkeypatch.setattr(wp, "_request", lambda cfg, method, path, **kw: sent.append((path, kw["json"])))
    wp.WordPressRepository(CFG).set_primary_asset(4, "100")
    assert sent == [("blog/4", {"featured_media": 100})]
