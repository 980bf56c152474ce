"""Webex location and floor listing."""
from __future__ import annotations

from .client import ApiResult, WebexClient
from wxprovision.core.models import Location


class LocationService:
    """Service for organization locations."""

    def __init__(self, client: WebexClient):
        self.client = client

    def list_locations(self, org_id: str) -> ApiResult:
        """Fetch every location; ``result.data`` becomes a list of ``Location``."""
        result = self.client.get(
            "/v1/locations",
            params={"orgId": org_id},
            action="retrieving locations",
        )
        if result.ok:
            result.data = [Location.from_api(item) for item in (result.data or {}).get("items", [])]
        return result

    def list_floors(self, location_id: str) -> ApiResult:
        """Fetch the floors of one location. Raw provider items are returned."""
        result = self.client.get(
            f"/v1/locations/{location_id}/floors",
            action="retrieving floors",
        )
        if result.ok:
            result.data = list((result.data or {}).get("items", []))
        return result
