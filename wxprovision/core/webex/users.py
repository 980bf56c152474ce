"""Webex SCIM user operations (bulk create, paged search)."""
from __future__ import annotations
import logging
from typing import Any, Dict, List

from .client import DECODE, ApiResult, WebexClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000

MSG_MALFORMED_PAGE = "Error retrieving users due to logical error in server program: unexpected response shape"


class UserService:
    """Service for SCIM users of one organization."""

    def __init__(self, client: WebexClient):
        self.client = client

    def bulk_create(self, org_id: str, bulk_request: Dict[str, Any]) -> ApiResult:
        """Submit a SCIM bulk request.

        Args:
            org_id: Organization id
            bulk_request: Full BulkRequest envelope

        Returns:
            ApiResult whose data is the raw BulkResponse
        """
        return self.client.post(
            f"/identity/scim/{org_id}/v2/Bulk",
            json=bulk_request,
            action="bulk exporting users",
        )

    def search_users(self, org_id: str, page_size: int = DEFAULT_PAGE_SIZE) -> ApiResult:
        """List every user of the organization, following SCIM pagination.

        Pages are requested with ``startIndex``/``count`` until
        ``totalResults`` users have been read or a page comes back empty.
        On success ``result.data`` is the concatenated ``Resources`` list.
        """
        resources: List[Dict[str, Any]] = []
        start_index = 1
        while True:
            result = self.client.get(
                f"/identity/scim/{org_id}/v2/Users",
                params={"startIndex": start_index, "count": page_size},
                action="retrieving users",
            )
            if not result.ok:
                return result

            page = result.data or {}
            if not isinstance(page, dict):
                return ApiResult.failure(DECODE, MSG_MALFORMED_PAGE, result.provider_status)
            items = page.get("Resources") or []
            if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
                return ApiResult.failure(DECODE, MSG_MALFORMED_PAGE, result.provider_status)
            resources.extend(items)
            total = page.get("totalResults", len(resources))
            if not isinstance(total, int):
                return ApiResult.failure(DECODE, MSG_MALFORMED_PAGE, result.provider_status)
            if not items or len(resources) >= total:
                break
            start_index += len(items)

        logger.debug("Fetched %d users for org %s", len(resources), org_id)
        return ApiResult(status=200, data=resources, provider_status=result.provider_status)
