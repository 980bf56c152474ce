"""Organization reference data (licenses, locations) keyed by name.

Fetched fresh for every export; nothing is cached between requests.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, TypeVar

from .webex import ApiResult, LicenseService, LocationService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _index_by_name(items: Iterable[T], kind: str) -> Dict[str, T]:
    indexed: Dict[str, T] = {}
    for item in items:
        name = getattr(item, "name", "")
        if not name:
            continue
        if name in indexed:
            logger.warning("Organization has more than one %s named '%s'; using the first", kind, name)
            continue
        indexed[name] = item
    return indexed


def licenses_by_name(service: LicenseService, org_id: str) -> ApiResult:
    """Fetch licenses; on success ``result.data`` is ``{name: License}``."""
    result = service.list_licenses(org_id)
    if result.ok:
        result.data = _index_by_name(result.data, "license")
    return result


def locations_by_name(service: LocationService, org_id: str) -> ApiResult:
    """Fetch locations; on success ``result.data`` is ``{name: Location}``."""
    result = service.list_locations(org_id)
    if result.ok:
        result.data = _index_by_name(result.data, "location")
    return result
