from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import pytest
from flask import Flask

from tests.conftest import ORG_ID
from wxprovision.api import auth


@pytest.fixture(autouse=True)
def reset_oauth_singleton():
    saved = auth.oauth
    auth.oauth = None
    yield
    auth.oauth = saved


@pytest.fixture()
def app_with_auth():
    app = Flask(__name__)
    app.secret_key = "test-secret"
    app.config["TESTING"] = True
    app.config["APP_CONFIG"] = SimpleNamespace(
        webex_client_id="client-123",
        webex_client_secret_resolved="client-secret",
        webex_redirect_uri="https://localhost/callback",
        webex_scopes="spark-admin:people_write",
        webex_api_base_url="https://webex.test",
        request_timeout=5,
        frontend_url="https://frontend.test",
    )
    app.register_blueprint(auth.bp)
    return app


@pytest.fixture()
def client(app_with_auth):
    with app_with_auth.test_client() as client:
        yield client


def test_get_webex_client_requires_init():
    with pytest.raises(RuntimeError, match="OAuth not initialized"):
        auth.get_webex_client()


def test_init_oauth_registers_webex_endpoints(app_with_auth):
    oauth = auth.init_oauth(app_with_auth, app_with_auth.config["APP_CONFIG"])
    client = oauth.create_client("webex")

    assert client.client_id == "client-123"
    assert client.authorize_url == "https://webex.test/v1/authorize"
    assert client.access_token_url == "https://webex.test/v1/access_token"


def test_pkce_challenge_is_s256_of_verifier():
    verifier = auth._generate_code_verifier()
    assert len(verifier) == 64
    # RFC 7636 appendix B example
    assert auth._build_code_challenge("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk") == \
        "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_login_sets_pkce_and_redirects(monkeypatch, client):
    captured = {}

    class FakeClient:
        def authorize_redirect(self, **kwargs):
            captured.update(kwargs)
            return "redirecting"

    monkeypatch.setattr(auth, "get_webex_client", lambda: FakeClient())

    response = client.get("/login")

    assert response.data == b"redirecting"
    assert captured["redirect_uri"] == "https://localhost/callback"
    assert captured["code_challenge_method"] == "S256"

    with client.session_transaction() as sess:
        verifier = sess["pkce_code_verifier"]
    assert captured["code_challenge"] == auth._build_code_challenge(verifier)


def test_login_redirects_to_webex_authorize(client, app_with_auth):
    auth.init_oauth(app_with_auth, app_with_auth.config["APP_CONFIG"])

    response = client.get("/login", follow_redirects=False)

    assert response.status_code == 302
    location = urlparse(response.headers["Location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == "https://webex.test/v1/authorize"
    params = parse_qs(location.query)
    assert params["client_id"] == ["client-123"]
    assert params["redirect_uri"] == ["https://localhost/callback"]


def test_callback_without_verifier_redirects_to_login(monkeypatch, client):
    monkeypatch.setattr(auth, "get_webex_client", lambda: None)

    response = client.get("/callback", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")


def test_callback_stores_token_and_identity(monkeypatch, webex, client):
    token_data = {"access_token": "abc123", "token_type": "Bearer"}

    class FakeClient:
        def authorize_access_token(self, code_verifier):
            assert code_verifier == "verifier"
            return token_data

    monkeypatch.setattr(auth, "get_webex_client", lambda: FakeClient())
    webex.add("GET", "/v1/people/me", {"id": "person-1", "orgId": ORG_ID, "displayName": "Ada Admin"})

    with client.session_transaction() as sess:
        sess["pkce_code_verifier"] = "verifier"

    response = client.get("/callback", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["Location"] == "https://frontend.test/home"
    assert webex.calls[0].headers["Authorization"] == "Bearer abc123"
    with client.session_transaction() as sess:
        assert sess["token"] == token_data
        assert sess["org_id"] == ORG_ID
        assert sess["display_name"] == "Ada Admin"
        assert "pkce_code_verifier" not in sess


def test_callback_keeps_token_when_identity_lookup_fails(monkeypatch, webex, client):
    class FakeClient:
        def authorize_access_token(self, code_verifier):
            return {"access_token": "abc123"}

    monkeypatch.setattr(auth, "get_webex_client", lambda: FakeClient())
    webex.add("GET", "/v1/people/me", status=500, text="unavailable")

    with client.session_transaction() as sess:
        sess["pkce_code_verifier"] = "verifier"

    response = client.get("/callback", follow_redirects=False)

    assert response.status_code == 302
    with client.session_transaction() as sess:
        assert sess["token"]["access_token"] == "abc123"
        assert "org_id" not in sess


def test_check_auth_reports_state(client):
    assert client.get("/check-auth").get_json() == {"isAuthenticated": "false", "authProvider": "webex"}

    with client.session_transaction() as sess:
        sess["token"] = {"access_token": "abc"}

    assert client.get("/check-auth").get_json()["isAuthenticated"] == "true"


def test_logout_clears_session_and_returns_to_frontend(client):
    with client.session_transaction() as sess:
        sess["token"] = {"access_token": "abc"}
        sess["org_id"] = ORG_ID

    response = client.post("/logout", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["Location"] == "https://frontend.test"
    with client.session_transaction() as sess:
        assert "token" not in sess
        assert "org_id" not in sess
