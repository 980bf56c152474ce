"""Turn parsed CSV rows into Webex user creation requests.

Each row is validated against the organization's locations and licenses.
Validation is all-or-nothing: the first bad row raises and no request list is
returned, so nothing reaches Webex.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Sequence, Tuple

from .csv_records import MSG_BAD_EXTENSION
from .exceptions import (
    CsvProcessingError,
    InternalConsistencyError,
    LicenseNotAvailableError,
    LocationNotAvailableError,
)
from .models import (
    EXTENSION_LICENSE_NAME,
    License,
    Location,
    RowRecord,
    UserCreationRequest,
    UserMetadata,
)
from .validators import validate_extension

logger = logging.getLogger(__name__)

# CSV column -> (license name as Webex spells it, name used in messages).
# Webex spells "Contact center Standard Agent" with a lowercase c.
LICENSE_COLUMN_MAP = {
    "Webex Contact Center Premium Agent": ("Contact Center Premium Agent", "Contact Center Premium Agent"),
    "Webex Contact Center Standard Agent": ("Contact center Standard Agent", "Contact Center Standard Agent"),
    "Webex Calling - Professional": ("Webex Calling - Professional", "Webex Calling - Professional"),
}

DUPLICATE_REJECT = "reject"
DUPLICATE_LAST_WINS = "last-wins"


def build_user_requests(
    records: Sequence[RowRecord],
    licenses: Dict[str, License],
    locations: Dict[str, Location],
    duplicate_policy: str = DUPLICATE_REJECT,
) -> Tuple[List[UserCreationRequest], Dict[str, UserMetadata]]:
    """Validate rows and build one creation request per user.

    Args:
        records: Parsed CSV rows, in file order
        licenses: Organization licenses keyed by Webex license name
        locations: Organization locations keyed by name
        duplicate_policy: ``reject`` fails on a repeated email, ``last-wins``
            keeps the data of the last row for that email

    Returns:
        (requests, metadata) where metadata is keyed by email and holds the
        same users as requests, in the same order

    Raises:
        CsvProcessingError: Bad extension, or calling license without extension/location,
            or duplicate email under ``reject``
        LocationNotAvailableError: Row names a location the organization lacks
        LicenseNotAvailableError: Row requests a license the organization lacks
        InternalConsistencyError: Requests and metadata diverged
    """
    # Webex logins are case-insensitive, so duplicates are matched on the lowered email
    by_login: Dict[str, UserMetadata] = {}

    for record in records:
        user_metadata = _build_metadata(record, licenses, locations)
        email = user_metadata.email
        if email.lower() in by_login:
            if duplicate_policy != DUPLICATE_LAST_WINS:
                raise CsvProcessingError(
                    f"Email '{email}' appears more than once in the CSV. No users have been created."
                )
            logger.info("Duplicate email %s on line %d replaces the earlier row", email, record.line_number)
        by_login[email.lower()] = user_metadata

    metadata = {user_metadata.email: user_metadata for user_metadata in by_login.values()}
    requests = [user_metadata.request for user_metadata in metadata.values()]
    ensure_consistent(requests, metadata)
    return requests, metadata


def ensure_consistent(requests: Sequence[UserCreationRequest], metadata: Dict[str, UserMetadata]) -> None:
    """Metadata must track exactly the users being submitted."""
    if len(metadata) != len(requests) or {r.email for r in requests} != set(metadata):
        raise InternalConsistencyError(
            "Logical error: user metadata does not match the user requests."
        )


def _build_metadata(
    record: RowRecord,
    licenses: Dict[str, License],
    locations: Dict[str, Location],
) -> UserMetadata:
    request = UserCreationRequest(
        email=record.email,
        display_name=record.display_name,
        given_name=record.first_name,
        family_name=record.last_name,
        active=record.status.lower() == "active",
    )

    try:
        extension = validate_extension(record.extension)
    except ValueError as exc:
        logger.info("Line %d: %s", record.line_number, exc)
        raise CsvProcessingError(MSG_BAD_EXTENSION) from exc
    if extension:
        request.add_primary_extension(extension)

    user_metadata = UserMetadata(request=request)

    if record.location_name:
        location = locations.get(record.location_name)
        if location is None:
            raise LocationNotAvailableError(
                f"Location '{record.location_name}' does not exist at this organization, "
                "so it cannot be assigned to any users."
            )
        user_metadata.location = location

    for column, (license_name, label) in LICENSE_COLUMN_MAP.items():
        if not record.license_flags.get(column):
            continue
        license = licenses.get(license_name)
        if license_name == EXTENSION_LICENSE_NAME:
            if not extension:
                raise CsvProcessingError(
                    f"Users cannot be assigned the {label} license without having an extension."
                )
            if not record.location_name:
                raise CsvProcessingError(
                    f"Users cannot be assigned the {label} license without having a location."
                )
        if license is None:
            raise LicenseNotAvailableError(
                f"{label} license is not available at this organization, so it cannot be assigned to any users."
            )
        user_metadata.add_license(license)

    return user_metadata
