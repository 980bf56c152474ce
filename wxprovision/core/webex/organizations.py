"""Webex organization and current-user lookups."""
from __future__ import annotations

from .client import ApiResult, WebexClient


class OrganizationService:
    """Service for the logged-in administrator's organization."""

    def __init__(self, client: WebexClient):
        self.client = client

    def get_organization(self, org_id: str) -> ApiResult:
        """Return ``{"id", "displayName"}`` for the organization."""
        result = self.client.get(f"/v1/organizations/{org_id}", action="retrieving organization details")
        if result.ok:
            data = result.data or {}
            result.data = {"id": data.get("id", org_id), "displayName": data.get("displayName", "")}
        return result

    def get_me(self) -> ApiResult:
        """Return the person record of the token owner (``orgId``, ``displayName``...)."""
        return self.client.get("/v1/people/me", action="retrieving the current user")
