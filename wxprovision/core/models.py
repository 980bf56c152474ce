"""Data structures shared by the bulk export pipeline.

Provider payloads are rendered with ``to_dict()``; provider responses are read
with ``from_api()``. Field names on the Python side are snake_case, the
Webex/SCIM wire names are produced only at the edges.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# SCIM schemas attached to every user creation request
USER_SCHEMAS = [
    "urn:ietf:params:scim:schemas:core:2.0:User",
    "urn:scim:schemas:extension:cisco:webexidentity:2.0:User",
    "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User",
]

# Phone number types accepted by the provider
PHONE_WORK = "work"
PHONE_WORK_EXTENSION = "work_extension"
PHONE_HOME = "home"
PHONE_MOBILE = "mobile"

_PHONE_DISPLAY = {
    PHONE_WORK: "Work",
    PHONE_WORK_EXTENSION: "Work extension",
    PHONE_HOME: "Home",
    PHONE_MOBILE: "Mobile",
}

# License whose assignment needs a location id and an extension
EXTENSION_LICENSE_NAME = "Webex Calling - Professional"


# ─────────────────────────────────────────────────────────────────────────────
# Organization reference data
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Location:
    """Organization location (read-only)."""
    id: str
    name: str
    org_id: str = ""
    time_zone: str = ""
    address: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Location":
        return cls(
            id=item.get("id") or "",
            name=item.get("name") or "",
            org_id=item.get("orgId") or "",
            time_zone=item.get("timeZone") or "",
            address=dict(item.get("address") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "orgId": self.org_id,
            "timeZone": self.time_zone,
            "address": dict(self.address),
        }


@dataclass(frozen=True)
class License:
    """Organization license (read-only)."""
    id: str
    name: str
    total_units: Optional[int] = None
    consumed_units: Optional[int] = None
    consumed_by_users: Optional[int] = None
    consumed_by_workspaces: Optional[int] = None
    subscription_id: str = ""
    site_url: str = ""

    @property
    def requires_extension(self) -> bool:
        """True for the license family assigned with location id + extension."""
        return self.name == EXTENSION_LICENSE_NAME

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "License":
        return cls(
            id=item.get("id") or "",
            name=item.get("name") or "",
            total_units=item.get("totalUnits"),
            consumed_units=item.get("consumedUnits"),
            consumed_by_users=item.get("consumedByUsers"),
            consumed_by_workspaces=item.get("consumedByWorkspaces"),
            subscription_id=item.get("subscriptionId") or "",
            site_url=item.get("siteUrl") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "totalUnits": self.total_units,
            "consumedUnits": self.consumed_units,
            "consumedByUsers": self.consumed_by_users,
            "consumedByWorkspaces": self.consumed_by_workspaces,
            "subscriptionId": self.subscription_id,
            "siteUrl": self.site_url,
        }


# ─────────────────────────────────────────────────────────────────────────────
# CSV input and creation requests
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class RowRecord:
    """One CSV data row, trimmed but not yet validated."""
    line_number: int
    first_name: str
    last_name: str
    display_name: str
    status: str
    email: str
    extension: str = ""
    location_name: str = ""
    license_flags: Dict[str, bool] = field(default_factory=dict)


@dataclass
class PhoneNumber:
    value: str
    type: str
    primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "type": self.type,
            "display": _PHONE_DISPLAY.get(self.type, self.type),
            "primary": self.primary,
        }


@dataclass
class UserCreationRequest:
    """Payload the provider needs to create one user.

    The email doubles as the login identifier (``userName``) and is the
    single entry of ``emails``.
    """
    email: str
    display_name: str
    given_name: str
    family_name: str
    active: bool
    schemas: List[str] = field(default_factory=lambda: list(USER_SCHEMAS))
    phone_numbers: List[PhoneNumber] = field(default_factory=list)
    user_type: str = "user"

    def add_primary_extension(self, extension: str) -> None:
        if not extension.isdigit():
            raise ValueError(f"Extension '{extension}' is not a number")
        self.phone_numbers.append(PhoneNumber(extension, PHONE_WORK_EXTENSION, primary=True))

    @property
    def extension(self) -> str:
        """Primary work extension, or empty string."""
        for number in self.phone_numbers:
            if number.type == PHONE_WORK_EXTENSION and number.primary:
                return number.value
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemas": list(self.schemas),
            "userName": self.email,
            "emails": [
                {"value": self.email, "type": "work", "display": "Work", "primary": False}
            ],
            "displayName": self.display_name,
            "name": {"givenName": self.given_name, "familyName": self.family_name},
            "userType": self.user_type,
            "active": self.active,
            "phoneNumbers": [number.to_dict() for number in self.phone_numbers],
        }


@dataclass
class UserMetadata:
    """Everything tracked about one user across the pipeline, keyed by email."""
    request: UserCreationRequest
    bulk_id: Optional[str] = None
    person_id: Optional[str] = None
    location: Optional[Location] = None
    licenses: List[License] = field(default_factory=list)

    @property
    def email(self) -> str:
        return self.request.email

    @property
    def first_name(self) -> str:
        return self.request.given_name or ""

    @property
    def last_name(self) -> str:
        return self.request.family_name or ""

    @property
    def extension(self) -> str:
        return self.request.extension

    @property
    def location_id(self) -> str:
        if self.location is None:
            return ""
        return self.location.id or ""

    def add_license(self, license: License) -> None:
        if license not in self.licenses:
            self.licenses.append(license)


# ─────────────────────────────────────────────────────────────────────────────
# Provider results
# ─────────────────────────────────────────────────────────────────────────────

CISCO_ERROR_SCHEMA = "urn:scim:schemas:extension:cisco:webexidentity:api:messages:2.0:Error"


@dataclass
class BatchItemResult:
    """One operation outcome from a bulk response. ``status`` stays a string."""
    bulk_id: str
    status: str
    detail: str = ""

    @classmethod
    def from_api(cls, operation: Dict[str, Any]) -> "BatchItemResult":
        response = operation.get("response") or {}
        detail = ""
        if isinstance(response, dict):
            cisco_error = response.get(CISCO_ERROR_SCHEMA)
            if isinstance(cisco_error, dict):
                detail = cisco_error.get("details") or ""
            detail = detail or response.get("detail") or ""
        return cls(
            bulk_id=str(operation.get("bulkId") or ""),
            status=str(operation.get("status") or ""),
            detail=str(detail),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Aggregate response
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class LicenseResult:
    license_name: str
    status: int
    message: str

    @property
    def succeeded(self) -> bool:
        return 200 <= self.status < 300

    def to_dict(self) -> Dict[str, Any]:
        return {"licenseName": self.license_name, "status": self.status, "message": self.message}


@dataclass
class UserResult:
    status: int
    email: str
    first_name: str
    last_name: str
    message: str = "Created."
    license_results: List[LicenseResult] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.status == 201

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "licenseResults": [result.to_dict() for result in self.license_results],
        }


@dataclass
class ExportOutcome:
    """Aggregate report returned to the caller of a bulk export.

    Counters only ever grow; ``add_user_result`` is the single place that
    touches them so ``totalCreateAttempts == len(results)`` always holds.
    """
    status: int = 200
    message: str = ""
    total_create_attempts: int = 0
    num_successfully_created: int = 0
    results: List[UserResult] = field(default_factory=list)

    def set_error(self, status: int, message: str) -> None:
        self.status = status
        self.message = message

    def add_user_result(self, result: UserResult) -> None:
        self.results.append(result)
        self.total_create_attempts += 1
        if result.created:
            self.num_successfully_created += 1

    def find_user_result(self, email: str) -> Optional[UserResult]:
        return next((result for result in self.results if result.email == email), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "totalCreateAttempts": self.total_create_attempts,
            "numSuccessfullyCreated": self.num_successfully_created,
            "message": self.message,
            "results": [result.to_dict() for result in self.results],
        }
