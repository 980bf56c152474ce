"""Webex license listing and assignment."""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from .client import ApiResult, WebexClient
from wxprovision.core.models import License


class LicenseService:
    """Service for organization licenses."""

    def __init__(self, client: WebexClient):
        self.client = client

    def list_licenses(self, org_id: str) -> ApiResult:
        """Fetch every license of the organization.

        On success ``result.data`` is replaced by a list of ``License``.
        """
        result = self.client.get(
            "/v1/licenses",
            params={"orgId": org_id},
            action="retrieving license information",
        )
        if result.ok:
            result.data = [License.from_api(item) for item in (result.data or {}).get("items", [])]
        return result

    def assign_licenses(
        self,
        email: str,
        person_id: str,
        org_id: str,
        licenses: List[Dict[str, Any]],
    ) -> ApiResult:
        """Add licenses to one user with a single PATCH.

        Args:
            email: User's email
            person_id: Durable user identifier
            org_id: Organization id
            licenses: Entries shaped ``{"operation": "add", "id": ..., "properties": {...}}``
        """
        payload = {
            "email": email,
            "personId": person_id,
            "orgId": org_id,
            "licenses": licenses,
        }
        return self.client.patch("/v1/licenses/users", json=payload, action="assigning a license")


def license_operation(license: License, location_id: Optional[str] = None, extension: Optional[str] = None) -> Dict[str, Any]:
    """Build the ``add`` entry for one license.

    Extension-bearing licenses carry ``properties`` with the location id and
    extension; all others are just the operation and id.
    """
    entry: Dict[str, Any] = {"operation": "add", "id": license.id}
    if license.requires_extension:
        entry["properties"] = {"locationId": location_id, "extension": extension}
    return entry
