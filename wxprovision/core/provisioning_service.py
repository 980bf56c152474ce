"""
Provisioning Service Layer: bulk user export to Webex

This module runs the CSV-to-Webex export pipeline used by both the Flask API
and the command-line runner.

Architecture:
    POST /export-users ──┐
                         ├──> provisioning_service.export_users ──> core.webex ──> Webex
    scripts/export_users ┘

Pipeline:
    1. Decode and parse the CSV (no Webex call on a bad file)
    2. Fetch licenses and locations for the organization
    3. Validate rows and build one creation request per user
    4. Submit one SCIM bulk request (correlation ids ``user-N``)
    5. Interpret each bulk operation (201 created, anything else failed)
    6. Resolve the new users' ids with a bounded, backing-off search
    7. Assign each pending license independently

Every fault becomes a status and message on the ``ExportOutcome``; partial
success (some users, some licenses) is reported per user and per license.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from wxprovision.config.settings import AppConfig
from wxprovision.core.csv_records import decode_upload, parse_csv_records
from wxprovision.core.exceptions import (
    InternalConsistencyError,
    MalformedResponseError,
    ProvisioningError,
    RequestCreationError,
)
from wxprovision.core.license_assignment import assign_licenses
from wxprovision.core.models import (
    BatchItemResult,
    ExportOutcome,
    LicenseResult,
    UserCreationRequest,
    UserMetadata,
    UserResult,
)
from wxprovision.core.reference_data import licenses_by_name, locations_by_name
from wxprovision.core.request_builder import build_user_requests, ensure_consistent
from wxprovision.core.webex import (
    ApiResult,
    LicenseService,
    LocationService,
    UserService,
    WebexClient,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

BULK_REQUEST_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:BulkRequest"

MSG_NO_USERS_IN_CSV = "An error occurred processing the CSV file: no users found."
MSG_NO_OPERATIONS = "Error: Webex attempted to create users but none succeeded."
MSG_NONE_CREATED = "No users were created."
MSG_MALFORMED_BULK_RESPONSE = "Malformed bulk response from Webex: expected a JSON object with a list of operations."
MSG_SEARCH_FAILED = "Error getting any user IDs. No licenses were assigned."
MSG_STATUS_200 = "Webex API returned 200 instead of 201 and did not create this user."
MSG_STATUS_409 = "Webex API responded with '{detail}' because a user with this email already exists."


@dataclass
class CreationReport:
    """Outcome of interpreting one bulk response."""
    operation_count: int = 0
    user_results: List[UserResult] = field(default_factory=list)
    created: List[UserMetadata] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Bulk submission
# ─────────────────────────────────────────────────────────────────────────────

def build_bulk_request(
    requests: Sequence[UserCreationRequest],
    metadata: Dict[str, UserMetadata],
    fail_on_errors: int = 10,
) -> Dict[str, Any]:
    """Assemble the SCIM BulkRequest envelope.

    Correlation ids ``user-1``, ``user-2``... follow request order and are
    written back into each user's metadata.

    Raises:
        RequestCreationError: No requests to send
        InternalConsistencyError: A request has no metadata entry
    """
    if not requests:
        raise RequestCreationError("Error occurred assembling user data: no users provided.")
    ensure_consistent(requests, metadata)

    operations = []
    for index, request in enumerate(requests, start=1):
        bulk_id = f"user-{index}"
        metadata[request.email].bulk_id = bulk_id
        operations.append({
            "method": "POST",
            "path": "/Users",
            "bulkId": bulk_id,
            "data": request.to_dict(),
        })

    return {
        "schemas": [BULK_REQUEST_SCHEMA],
        "failOnErrors": fail_on_errors,
        "Operations": operations,
    }


def submit_bulk_request(service: UserService, org_id: str, bulk_request: Dict[str, Any]) -> ApiResult:
    """Send the envelope once. Failures are classified, never retried."""
    count = len(bulk_request.get("Operations", []))
    logger.info("Submitting bulk creation of %d users for org %s", count, org_id)
    result = service.bulk_create(org_id, bulk_request)
    if not result.ok:
        logger.warning("Bulk creation failed (%s): %s", result.error_kind, result.message)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Creation results
# ─────────────────────────────────────────────────────────────────────────────

def _operation_status(status: str) -> int:
    try:
        return int(status)
    except ValueError:
        return 500


def _failure_message(item: BatchItemResult) -> str:
    if item.status == "200":
        return MSG_STATUS_200
    if item.status == "409":
        return MSG_STATUS_409.format(detail=item.detail)
    return item.detail


def process_creation_results(response: Optional[Dict[str, Any]], metadata: Dict[str, UserMetadata]) -> CreationReport:
    """Interpret a 2xx bulk response.

    Args:
        response: Decoded BulkResponse body
        metadata: Users keyed by email, with ``bulk_id`` already assigned

    Returns:
        CreationReport with one UserResult per operation, in response order

    Raises:
        InternalConsistencyError: An operation's bulkId matches no submitted user
        MalformedResponseError: The body or one of its operations is not a JSON object
    """
    response = response or {}
    if not isinstance(response, dict):
        raise MalformedResponseError(MSG_MALFORMED_BULK_RESPONSE)
    operations = response.get("Operations") or response.get("operations") or []
    if not isinstance(operations, list) or not all(isinstance(op, dict) for op in operations):
        raise MalformedResponseError(MSG_MALFORMED_BULK_RESPONSE)
    by_bulk_id = {user.bulk_id: user for user in metadata.values() if user.bulk_id}

    report = CreationReport(operation_count=len(operations))
    for operation in operations:
        item = BatchItemResult.from_api(operation)
        user = by_bulk_id.get(item.bulk_id)
        if user is None:
            raise InternalConsistencyError(
                f"Logical error: bulk id '{item.bulk_id}' does not match any submitted user."
            )

        if item.status == "201":
            report.user_results.append(UserResult(201, user.email, user.first_name, user.last_name))
            report.created.append(user)
        else:
            report.user_results.append(UserResult(
                _operation_status(item.status),
                user.email,
                user.first_name,
                user.last_name,
                message=_failure_message(item),
            ))

    logger.info("Bulk response: %d of %d users created", len(report.created), len(operations))
    return report


# ─────────────────────────────────────────────────────────────────────────────
# Identifier resolution
# ─────────────────────────────────────────────────────────────────────────────

def resolve_user_ids(
    service: UserService,
    org_id: str,
    users: Sequence[UserMetadata],
    page_size: int = 1000,
    max_attempts: int = 5,
    initial_delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 8.0,
    sleep: Callable[[float], None] = time.sleep,
) -> ApiResult:
    """Fill in ``person_id`` for newly created users.

    Webex search is eventually consistent, so the full user listing is polled
    until every user is found or ``max_attempts`` searches were made. The wait
    between searches starts at ``initial_delay`` and grows by ``backoff`` up
    to ``max_delay``.

    Returns:
        The failed search ApiResult, or an ok ApiResult whose data is the
        list of emails still unresolved
    """
    delay = initial_delay
    pending = {user.email.lower(): user for user in users if not user.person_id}

    for attempt in range(1, max_attempts + 1):
        if not pending:
            break
        if attempt > 1:
            sleep(delay)
            delay = min(delay * backoff, max_delay)

        result = service.search_users(org_id, page_size=page_size)
        if not result.ok:
            logger.warning("User search failed on attempt %d: %s", attempt, result.message)
            return result

        for resource in result.data:
            user = pending.get(str(resource.get("userName", "")).lower())
            if user is not None and resource.get("id"):
                user.person_id = resource["id"]
                del pending[user.email.lower()]

        logger.debug("Id resolution attempt %d: %d users still unresolved", attempt, len(pending))

    unresolved = [user.email for user in users if not user.person_id]
    if unresolved:
        logger.warning("Could not resolve ids for %d users: %s", len(unresolved), ", ".join(unresolved))
    return ApiResult(status=200, data=unresolved)


# ─────────────────────────────────────────────────────────────────────────────
# Orchestration
# ─────────────────────────────────────────────────────────────────────────────

def export_users(
    raw: Optional[bytes],
    access_token: str,
    org_id: str,
    config: AppConfig,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    client: Optional[WebexClient] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ExportOutcome:
    """Run the whole bulk export for one uploaded CSV.

    Args:
        raw: Uploaded file content
        access_token: Administrator's bearer token
        org_id: Organization to create users in
        config: Application settings (tuning knobs for the pipeline)
        filename: Upload file name, used for the CSV type check
        content_type: Upload MIME type, used for the CSV type check
        client: Preconfigured WebexClient (built from config when omitted)
        sleep: Wait function used between id searches

    Returns:
        ExportOutcome; its ``status`` is the HTTP status for the caller
    """
    outcome = ExportOutcome()
    try:
        _run_export(outcome, raw, access_token, org_id, config, filename, content_type, client, sleep)
    except InternalConsistencyError as exc:
        logger.error("internal consistency fault during export: %s", exc.message)
        outcome.set_error(exc.status, exc.message)
    except ProvisioningError as exc:
        logger.info("Export rejected: %s", exc.message)
        outcome.set_error(exc.status, exc.message)
    return outcome


def _run_export(
    outcome: ExportOutcome,
    raw: Optional[bytes],
    access_token: str,
    org_id: str,
    config: AppConfig,
    filename: Optional[str],
    content_type: Optional[str],
    client: Optional[WebexClient],
    sleep: Callable[[float], None],
) -> None:
    # Step 1: the file is fully checked before any Webex call
    records = parse_csv_records(decode_upload(raw, filename, content_type))
    if not records:
        outcome.set_error(400, MSG_NO_USERS_IN_CSV)
        return

    client = client or WebexClient(access_token, base_url=config.webex_api_base_url, timeout=config.request_timeout)
    user_service = UserService(client)
    license_service = LicenseService(client)

    # Step 2: reference data, fresh for this request
    licenses = licenses_by_name(license_service, org_id)
    if not licenses.ok:
        outcome.set_error(licenses.status, licenses.message)
        return
    locations = locations_by_name(LocationService(client), org_id)
    if not locations.ok:
        outcome.set_error(locations.status, locations.message)
        return

    # Step 3: validation and request building (all-or-nothing)
    requests, metadata = build_user_requests(
        records,
        licenses.data,
        locations.data,
        duplicate_policy=config.duplicate_email_policy,
    )

    # Step 4: one bulk submission
    bulk_request = build_bulk_request(requests, metadata, fail_on_errors=config.bulk_fail_on_errors)
    submission = submit_bulk_request(user_service, org_id, bulk_request)
    if not submission.ok:
        outcome.set_error(submission.status, submission.message)
        return

    # Step 5: per-user creation results
    report = process_creation_results(submission.data, metadata)
    if report.operation_count == 0:
        outcome.set_error(500, MSG_NO_OPERATIONS)
        return
    for user_result in report.user_results:
        outcome.add_user_result(user_result)
    if not report.created:
        outcome.set_error(400, MSG_NONE_CREATED)
        return

    outcome.status = 200
    pending = [user for user in report.created if user.licenses]
    if not pending:
        return

    # Step 6: ids are needed before any license can be assigned
    resolution = resolve_user_ids(
        user_service,
        org_id,
        pending,
        page_size=config.user_search_page_size,
        max_attempts=config.id_resolution_max_attempts,
        initial_delay=config.id_resolution_initial_delay,
        backoff=config.id_resolution_backoff,
        max_delay=config.id_resolution_max_delay,
        sleep=sleep,
    )
    if not resolution.ok:
        outcome.message = f"{MSG_SEARCH_FAILED} {resolution.message}".strip()
        return

    # Step 7: each (user, license) pair independently
    license_results = assign_licenses(
        license_service,
        org_id,
        pending,
        workers=config.license_assignment_workers,
    )
    for email, results in license_results.items():
        _record_license_results(outcome, email, results)


def _record_license_results(outcome: ExportOutcome, email: str, results: List[LicenseResult]) -> None:
    user_result = outcome.find_user_result(email)
    if user_result is None:
        raise InternalConsistencyError(
            f"Logical error: license results for '{email}' have no matching user result."
        )
    user_result.license_results.extend(results)
