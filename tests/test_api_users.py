"""Tests for the POST /export-users endpoint."""
import io

import pytest
import requests

from tests.conftest import ORG_ID, seed_org

BULK_PATH = f"/identity/scim/{ORG_ID}/v2/Bulk"
USERS_PATH = f"/identity/scim/{ORG_ID}/v2/Users"

CSV = (
    "First Name,Last Name,Display Name,Status,Email,Extension,Location,"
    "Webex Contact Center Premium Agent,Webex Contact Center Standard Agent,Webex Calling - Professional\n"
    "Ada,Lovelace,Ada L,Active,ada@example.com,1001,HQ,false,false,true\n"
    "Bob,Babbage,Bob B,Inactive,bob@example.com,,,false,false,false\n"
)


@pytest.fixture(autouse=True)
def _no_poll_wait(app):
    cfg = app.config["APP_CONFIG"]
    cfg.id_resolution_initial_delay = 0.0
    cfg.id_resolution_max_delay = 0.0


def upload(client, body=CSV, filename="users.csv", content_type="text/csv"):
    return client.post(
        "/export-users",
        data={"file": (io.BytesIO(body.encode("utf-8")), filename, content_type)},
        content_type="multipart/form-data",
    )


def test_requires_login(client, webex):
    response = upload(client)

    assert response.status_code == 401
    assert response.get_json()["error"] == "Unauthorized"
    assert webex.calls == []


def test_missing_file_is_rejected(auth_client, webex):
    response = auth_client.post("/export-users", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    body = response.get_json()
    assert body["message"] == "File is required and cannot be empty."
    assert body["totalCreateAttempts"] == 0
    assert webex.calls == []


def test_wrong_file_type_is_rejected(auth_client, webex):
    response = upload(auth_client, filename="users.xlsx", content_type="application/vnd.ms-excel")

    assert response.status_code == 400
    assert "Must be a CSV" in response.get_json()["message"]


def test_full_export(auth_client, webex):
    seed_org(webex)
    webex.add("POST", BULK_PATH, {"Operations": [
        {"bulkId": "user-1", "method": "POST", "status": "201"},
        {"bulkId": "user-2", "method": "POST", "status": "409",
         "response": {"detail": "User already exists"}},
    ]})
    webex.add("GET", USERS_PATH, {"totalResults": 1, "Resources": [{"id": "p-ada", "userName": "ada@example.com"}]})
    webex.add("PATCH", "/v1/licenses/users", {})

    response = upload(auth_client)

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == 200
    assert body["totalCreateAttempts"] == 2
    assert body["numSuccessfullyCreated"] == 1
    ada, bob = body["results"]
    assert ada["status"] == 201
    assert ada["licenseResults"] == [
        {"licenseName": "Webex Calling - Professional", "status": 200, "message": "Assigned."}
    ]
    assert bob["status"] == 409
    assert bob["licenseResults"] == []

    bulk_ops = webex.calls_to("POST", BULK_PATH)[0].json["Operations"]
    assert [op["data"]["active"] for op in bulk_ops] == [True, False]
    assert webex.calls_to("POST", BULK_PATH)[0].headers["Authorization"] == "Bearer test-token"


def test_provider_outage_status_is_propagated(auth_client, webex):
    webex.add("GET", "/v1/licenses", exc=requests.exceptions.ConnectionError("down"))

    response = upload(auth_client)

    assert response.status_code == 503
    assert response.get_json()["status"] == 503
