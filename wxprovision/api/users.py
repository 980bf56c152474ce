"""Bulk user export endpoint."""
from flask import Blueprint, current_app, jsonify, request

from wxprovision.api.decorators import require_login, session_webex_client
from wxprovision.core.provisioning_service import export_users
from wxprovision.core.session_context import current_access_token, current_org_id

bp = Blueprint("users", __name__)


@bp.route("/export-users", methods=["POST"])
@require_login
def export_users_route():
    """Create users from an uploaded CSV and assign their licenses.

    Form fields:
        file: CSV upload

    Returns the aggregate export report; the HTTP status equals its ``status``.
    """
    cfg = current_app.config["APP_CONFIG"]
    upload = request.files.get("file")
    raw = upload.read() if upload else None

    outcome = export_users(
        raw,
        access_token=current_access_token(),
        org_id=current_org_id(),
        config=cfg,
        filename=upload.filename if upload else None,
        content_type=upload.mimetype if upload else None,
        client=session_webex_client(),
    )

    current_app.logger.info(
        f"[export-users] status={outcome.status} "
        f"created={outcome.num_successfully_created}/{outcome.total_create_attempts}"
    )
    return jsonify(outcome.to_dict()), outcome.status
