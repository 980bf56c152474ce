"""Per-user, per-license assignment for newly created users.

Each (user, license) pair is its own PATCH call with its own recorded outcome.
A failed license never stops the remaining ones and never undoes the user's
creation.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Sequence, Tuple

from .models import License, LicenseResult, UserMetadata
from .webex import LicenseService, license_operation

logger = logging.getLogger(__name__)

MSG_ASSIGNED = "Assigned."
MSG_UNRESOLVED = "User id could not be resolved after the user was created, so this license was not assigned."


def assign_licenses(
    service: LicenseService,
    org_id: str,
    users: Sequence[UserMetadata],
    workers: int = 1,
) -> Dict[str, List[LicenseResult]]:
    """Assign every pending license of every user.

    Args:
        service: License service bound to the administrator's token
        org_id: Organization id
        users: Created users, in response order
        workers: Concurrent PATCH calls; 1 runs sequentially

    Returns:
        ``{email: [LicenseResult, ...]}`` with licenses in the user's pending order
    """
    tasks: List[Tuple[UserMetadata, License]] = [
        (user, license) for user in users for license in user.licenses
    ]

    if workers <= 1 or len(tasks) <= 1:
        outcomes = [_assign_one(service, org_id, user, license) for user, license in tasks]
    else:
        outcomes = [None] * len(tasks)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_assign_one, service, org_id, user, license): index
                for index, (user, license) in enumerate(tasks)
            }
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()

    results: Dict[str, List[LicenseResult]] = {user.email: [] for user in users}
    for (user, _license), outcome in zip(tasks, outcomes):
        results[user.email].append(outcome)
    return results


def _assign_one(service: LicenseService, org_id: str, user: UserMetadata, license: License) -> LicenseResult:
    if not user.person_id:
        return LicenseResult(license.name, 404, MSG_UNRESOLVED)

    if license.requires_extension and not (user.location_id and user.extension):
        return LicenseResult(
            license.name,
            400,
            "Failed to assign license: a location and an extension are required for this license.",
        )

    entry = license_operation(license, location_id=user.location_id, extension=user.extension)
    result = service.assign_licenses(user.email, user.person_id, org_id, [entry])
    if result.ok:
        logger.info("Assigned license %s to %s", license.name, user.email)
        return LicenseResult(license.name, 200, MSG_ASSIGNED)

    logger.warning("License %s not assigned to %s: %s", license.name, user.email, result.message)
    return LicenseResult(license.name, result.status, f"Failed to assign license: {result.message}")
