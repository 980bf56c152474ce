"""Unit tests for the Webex HTTP client and its services."""
import pytest
import requests

from tests.conftest import LICENSES, LOCATIONS, ORG_ID, StubResponse
from wxprovision.core.models import License
from wxprovision.core.webex import (
    CLIENT_REJECTED,
    CONNECTIVITY,
    DECODE,
    SERVER_ERROR,
    LicenseService,
    LocationService,
    OrganizationService,
    UserService,
    WebexClient,
    license_operation,
)


@pytest.fixture()
def client():
    return WebexClient("tok-123", base_url="https://webex.test/", timeout=5)


class TestRequestClassification:
    def test_success_returns_decoded_body(self, webex, client):
        webex.add("GET", "/v1/people/me", {"id": "p1", "orgId": ORG_ID})

        result = client.get("/v1/people/me")

        assert result.ok
        assert result.status == 200
        assert result.data == {"id": "p1", "orgId": ORG_ID}

    def test_sends_bearer_token_and_timeout(self, monkeypatch, client):
        captured = {}

        def fake_request(method, url, **kwargs):
            captured.update(kwargs, method=method, url=url)
            return StubResponse({})

        monkeypatch.setattr(requests, "request", fake_request)
        client.get("/v1/licenses", params={"orgId": ORG_ID})

        assert captured["url"] == "https://webex.test/v1/licenses"
        assert captured["headers"]["Authorization"] == "Bearer tok-123"
        assert captured["timeout"] == 5
        assert captured["params"] == {"orgId": ORG_ID}

    def test_empty_body_yields_empty_dict(self, webex, client):
        webex.add("PATCH", "/v1/licenses/users", status=204, text="")
        result = client.patch("/v1/licenses/users", json={})
        assert result.ok
        assert result.status == 204
        assert result.data == {}

    def test_4xx_maps_to_400(self, webex, client):
        webex.add("GET", "/v1/licenses", status=403, text='{"message": "forbidden"}')

        result = client.get("/v1/licenses", action="retrieving license information")

        assert not result.ok
        assert result.error_kind == CLIENT_REJECTED
        assert result.status == 400
        assert result.provider_status == 403
        assert result.message.startswith("Webex API returned a 4xx error for retrieving license information")
        assert "forbidden" in result.message

    def test_5xx_maps_to_500(self, webex, client):
        webex.add("GET", "/v1/locations", status=502, text="bad gateway")
        result = client.get("/v1/locations", action="retrieving locations")
        assert result.error_kind == SERVER_ERROR
        assert result.status == 500
        assert result.provider_status == 502
        assert "5xx" in result.message

    @pytest.mark.parametrize("exc", [
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.Timeout("slow"),
    ])
    def test_unreachable_maps_to_503(self, webex, client, exc):
        webex.add("GET", "/v1/locations", exc=exc)
        result = client.get("/v1/locations", action="retrieving locations")
        assert result.error_kind == CONNECTIVITY
        assert result.status == 503
        assert result.message.startswith("Error accessing Webex API when retrieving locations")

    def test_undecodable_body_maps_to_500(self, webex, client):
        webex.add("GET", "/v1/locations", text="<html>not json</html>")
        result = client.get("/v1/locations", action="retrieving locations")
        assert result.error_kind == DECODE
        assert result.status == 500
        assert "logical error" in result.message


class TestServices:
    def test_list_licenses_returns_models(self, webex, client):
        webex.add("GET", "/v1/licenses", {"items": LICENSES})

        result = LicenseService(client).list_licenses(ORG_ID)

        assert result.ok
        assert [lic.name for lic in result.data] == [item["name"] for item in LICENSES]
        assert result.data[0].total_units == 10
        assert webex.calls_to("GET", "/v1/licenses")[0].params == {"orgId": ORG_ID}

    def test_list_locations_returns_models(self, webex, client):
        webex.add("GET", "/v1/locations", {"items": LOCATIONS})
        result = LocationService(client).list_locations(ORG_ID)
        assert [loc.id for loc in result.data] == ["loc-hq", "loc-remote"]
        assert result.data[0].to_dict()["timeZone"] == "America/Chicago"

    def test_list_licenses_failure_passes_through(self, webex, client):
        webex.add("GET", "/v1/licenses", status=401, text="expired")
        result = LicenseService(client).list_licenses(ORG_ID)
        assert result.status == 400
        assert result.data == {}

    def test_get_organization(self, webex, client):
        webex.add("GET", f"/v1/organizations/{ORG_ID}", {"id": ORG_ID, "displayName": "Acme", "created": "x"})
        result = OrganizationService(client).get_organization(ORG_ID)
        assert result.data == {"id": ORG_ID, "displayName": "Acme"}

    def test_bulk_create_posts_envelope(self, webex, client):
        webex.add("POST", f"/identity/scim/{ORG_ID}/v2/Bulk", {"Operations": []})
        envelope = {"schemas": ["x"], "failOnErrors": 10, "Operations": []}

        result = UserService(client).bulk_create(ORG_ID, envelope)

        assert result.ok
        assert webex.calls[0].json == envelope

    def test_search_users_follows_pages(self, webex, client):
        path = f"/identity/scim/{ORG_ID}/v2/Users"
        webex.add("GET", path, {"totalResults": 3, "Resources": [{"id": "1"}, {"id": "2"}]})
        webex.add("GET", path, {"totalResults": 3, "Resources": [{"id": "3"}]})

        result = UserService(client).search_users(ORG_ID, page_size=2)

        assert [user["id"] for user in result.data] == ["1", "2", "3"]
        assert [call.params["startIndex"] for call in webex.calls_to("GET", path)] == [1, 3]

    def test_search_users_stops_on_empty_page(self, webex, client):
        path = f"/identity/scim/{ORG_ID}/v2/Users"
        webex.add("GET", path, {"totalResults": 10, "Resources": []})
        result = UserService(client).search_users(ORG_ID)
        assert result.data == []
        assert len(webex.calls) == 1

    def test_search_users_failure_mid_way(self, webex, client):
        path = f"/identity/scim/{ORG_ID}/v2/Users"
        webex.add("GET", path, {"totalResults": 4, "Resources": [{"id": "1"}, {"id": "2"}]})
        webex.add("GET", path, status=500, text="boom")
        result = UserService(client).search_users(ORG_ID, page_size=2)
        assert not result.ok
        assert result.status == 500

    @pytest.mark.parametrize("page", [
        ["unexpected"],
        {"totalResults": 1, "Resources": ["ada@example.com"]},
        {"totalResults": 1, "Resources": {"id": "1"}},
        {"totalResults": "one", "Resources": [{"id": "1"}]},
    ])
    def test_search_users_unexpected_page_shape_maps_to_decode(self, webex, client, page):
        webex.add("GET", f"/identity/scim/{ORG_ID}/v2/Users", page)

        result = UserService(client).search_users(ORG_ID)

        assert not result.ok
        assert result.status == 500
        assert result.error_kind == DECODE
        assert "unexpected response shape" in result.message


def test_license_operation_for_plain_license():
    lic = License(id="lic-premium", name="Contact Center Premium Agent")
    assert license_operation(lic, "loc-hq", "1001") == {"operation": "add", "id": "lic-premium"}


def test_license_operation_for_calling_license():
    lic = License(id="lic-calling", name="Webex Calling - Professional")
    assert license_operation(lic, "loc-hq", "1001") == {
        "operation": "add",
        "id": "lic-calling",
        "properties": {"locationId": "loc-hq", "extension": "1001"},
    }
