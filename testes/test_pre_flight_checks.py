import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
import requests

from squarespace_migrator.utils import pre_flight_checks
from squarespace_migrator.utils.pre_flight_checks import PreFlightCheckError, run_wordpress_pre_flight_checks

CONFIG = {"wordpress": {"base_url": "https://new.example", "username": "u", "application_password": "p"}}


def make_response(status):
    resp = requests.Response()
    resp.status_code = status
    return resp


def test_missing_credentials_fail_fast():
    with pytest.raises(PreFlightCheckError):
        run_wordpress_pre_flight_checks({"wordpress": {"base_url": "https://new.example"}})
    with pytest.raises(PreFlightCheckError):
        run_wordpress_pre_flight_checks({"wordpress": {}})


def test_checks_pass(monkeypatch):
    urls = []

    def fake_get(url, auth=None, timeout=None):
        urls.append(url)
        return make_response(200)

    monkeypatch.setattr(pre_flight_checks.requests, "get", fake_get)
    run_wordpress_pre_flight_checks(CONFIG)
    assert urls == [
        "https://new.example/wp-json/wp/v2/users/me",
        "https://new.example/wp-json/wp/v2/types/blog",
    ]


def test_unregistered_post_type_is_reported(monkeypatch):
    monkeypatch.setattr(
        pre_flight_checks.requests,
        "get",
        lambda url, auth=None, timeout=None: make_response(404 if "/types/" in url else 200),
    )
    with pytest.raises(PreFlightCheckError, match="not registered"):
        run_wordpress_pre_flight_checks(CONFIG)


def test_revoked_password_is_reported(monkeypatch):
    monkeypatch.setattr(pre_flight_checks.requests, "get", lambda url, auth=None, timeout=None: make_response(401))
    with pytest.raises(PreFlightCheckError, match="invalid or was revoked"):
        run_wordpress_pre_flight_checks(CONFIG)
