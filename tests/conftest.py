"""Pytest shared fixtures."""
import json
import os
import pathlib
import sys
from types import SimpleNamespace
from typing import Optional
from urllib.parse import urlparse

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests

from wxprovision.config.settings import AppConfig
from wxprovision.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Stub Webex API
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, text: Optional[str] = None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeWebex:
    """Routes ``requests.request`` calls by (method, path) to canned responses.

    Each route holds a queue; responses are consumed in order and the last one
    keeps answering once the queue is down to one entry.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method: str, path: str, payload=None, status: int = 200, text: Optional[str] = None, exc=None):
        self.routes.setdefault((method.upper(), path), []).append((payload, status, text, exc))
        return self

    def __call__(self, method, url, params=None, json=None, headers=None, timeout=None, **kwargs):
        path = urlparse(url).path
        self.calls.append(SimpleNamespace(method=method.upper(), path=path, params=params, json=json, headers=headers))
        queue = self.routes.get((method.upper(), path))
        if not queue:
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        payload, status, text, exc = queue.pop(0) if len(queue) > 1 else queue[0]
        if exc is not None:
            raise exc
        return StubResponse(payload, status, text)

    def calls_to(self, method: str, path: str) -> list:
        return [call for call in self.calls if call.method == method.upper() and call.path == path]


ORG_ID = "org-1"

LICENSES = [
    {"id": "lic-premium", "name": "Contact Center Premium Agent", "totalUnits": 10, "consumedUnits": 1},
    {"id": "lic-standard", "name": "Contact center Standard Agent", "totalUnits": 10, "consumedUnits": 0},
    {"id": "lic-calling", "name": "Webex Calling - Professional", "totalUnits": 50, "consumedUnits": 5},
]

LOCATIONS = [
    {"id": "loc-hq", "name": "HQ", "orgId": ORG_ID, "timeZone": "America/Chicago"},
    {"id": "loc-remote", "name": "Remote", "orgId": ORG_ID, "timeZone": "UTC"},
]


def seed_org(webex: FakeWebex, licenses=None, locations=None) -> FakeWebex:
    """Register license and location listings for ORG_ID."""
    webex.add("GET", "/v1/licenses", {"items": LICENSES if licenses is None else licenses})
    webex.add("GET", "/v1/locations", {"items": LOCATIONS if locations is None else locations})
    return webex


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting the live Webex API.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub_request(method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests, "request", _stub_request)


@pytest.fixture()
def webex(monkeypatch):
    """FakeWebex wired into requests.request."""
    fake = FakeWebex()
    monkeypatch.setattr(requests, "request", fake)
    return fake


@pytest.fixture()
def cfg():
    """Pipeline settings with no waiting between id searches."""
    return AppConfig(
        demo_mode=True,
        secret_key="test-secret",
        id_resolution_initial_delay=0.0,
        id_resolution_max_delay=0.0,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app():
    flask_app = create_app()
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    """Flask test client (not logged in)."""
    with app.test_client() as client:
        with app.app_context():
            yield client


def login(client, org_id: str = ORG_ID, display_name: str = "Ada Admin", token: str = "test-token"):
    """Put a logged-in Webex administrator into the test client's session."""
    with client.session_transaction() as session:
        session["token"] = {"access_token": token, "token_type": "Bearer"}
        session["org_id"] = org_id
        session["display_name"] = display_name


@pytest.fixture()
def auth_client(client):
    login(client)
    return client


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires live Webex credentials)"
    )
