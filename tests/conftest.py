"""pytest configuration for the Mallet gateway."""

import sys
from pathlib import Path

import pytest
import requests

# The modules live at the repository root.
root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from mallet_config import make_config  # noqa: E402
from mallet_server import create_app  # noqa: E402

UPSTREAM_URL = "https://upstream.test/api/pkpass"
API_KEY = "sk-test-secret-1234"


def make_upstream_response(status=200, content=b"", content_type="application/vnd.apple.pkpass"):
    """A real requests.Response with canned status, headers and body."""
    resp = requests.Response()
    resp.status_code = status
    resp._content = content
    if content_type:
        resp.headers["Content-Type"] = content_type
    resp.url = UPSTREAM_URL
    return resp


class UpstreamStub:
    """Stands in for requests.post and records every call."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else make_upstream_response(200, b"PKPASS")
        self.error = error
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def static_root(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<!doctype html><title>Mallet</title>")
    (root / "app.js").write_text("console.log('mallet');")
    (root / "styles.css").write_text("body{}")
    (root / "data.bin").write_bytes(b"\x00\x01\x02")
    (root / "assets").mkdir()
    (root / "assets" / "logo.svg").write_text("<svg/>")
    (tmp_path / "secret.txt").write_text("do not serve")
    return root


@pytest.fixture
def config_factory(static_root):
    def factory(**overrides):
        values = {
            "upstream_url": UPSTREAM_URL,
            "api_key": API_KEY,
            "static_root": str(static_root),
        }
        values.update(overrides)
        return make_config(**values)
    return factory


@pytest.fixture
def config(config_factory):
    return config_factory()


@pytest.fixture
def upstream(monkeypatch):
    stub = UpstreamStub()
    monkeypatch.setattr(requests, "post", stub)
    return stub


@pytest.fixture
def client(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app.test_client()
