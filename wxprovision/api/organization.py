"""Read-through organization endpoints (org details, name, licenses, locations)."""
from flask import Blueprint, jsonify

from wxprovision.api.decorators import require_login, session_webex_client
from wxprovision.core.session_context import current_display_name, current_org_id
from wxprovision.core.webex import ApiResult, LicenseService, LocationService, OrganizationService

bp = Blueprint("organization", __name__)


def _result_response(result: ApiResult, payload=None):
    if not result.ok:
        return jsonify({"error": result.error_kind, "message": result.message}), result.status
    return jsonify(result.data if payload is None else payload), 200


@bp.route("/my-organization")
@require_login
def my_organization():
    """Organization ``{id, displayName}`` of the logged-in administrator."""
    result = OrganizationService(session_webex_client()).get_organization(current_org_id())
    return _result_response(result)


@bp.route("/my-name")
@require_login
def my_name():
    return jsonify({"displayName": current_display_name()})


@bp.route("/licenses")
@require_login
def list_licenses():
    result = LicenseService(session_webex_client()).list_licenses(current_org_id())
    if result.ok:
        return _result_response(result, [license.to_dict() for license in result.data])
    return _result_response(result)


@bp.route("/locations")
@require_login
def list_locations():
    result = LocationService(session_webex_client()).list_locations(current_org_id())
    if result.ok:
        return _result_response(result, [location.to_dict() for location in result.data])
    return _result_response(result)


@bp.route("/locations/<location_id>/floors")
@require_login
def list_floors(location_id):
    result = LocationService(session_webex_client()).list_floors(location_id)
    return _result_response(result)
