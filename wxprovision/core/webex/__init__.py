"""Webex API client library.

Architecture:
- client.py: HTTP client bound to a bearer token, returns ApiResult
- licenses.py: License listing and assignment
- locations.py: Location and floor listing
- users.py: SCIM bulk create and paged user search
- organizations.py: Organization details and current user

Usage:
    from wxprovision.core.webex import WebexClient, LicenseService

    client = WebexClient(token)
    result = LicenseService(client).list_licenses(org_id)
    if result.ok:
        licenses = result.data
"""
from .client import (
    WebexClient,
    ApiResult,
    REQUEST_TIMEOUT,
    CLIENT_REJECTED,
    SERVER_ERROR,
    CONNECTIVITY,
    DECODE,
)
from .licenses import LicenseService, license_operation
from .locations import LocationService
from .organizations import OrganizationService
from .users import UserService

__all__ = [
    # Client
    "WebexClient",
    "ApiResult",
    "REQUEST_TIMEOUT",
    "CLIENT_REJECTED",
    "SERVER_ERROR",
    "CONNECTIVITY",
    "DECODE",

    # Services
    "LicenseService",
    "LocationService",
    "OrganizationService",
    "UserService",
    "license_operation",
]
