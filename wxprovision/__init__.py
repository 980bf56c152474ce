"""Webex bulk provisioning backend package.

To use the Flask app:
    from wxprovision.flask_app import create_app

To run the bulk user export without Flask:
    from wxprovision.core.provisioning_service import export_users
"""
# Note: We don't import flask_app by default so scripts/export_users.py can
# run the workflow without initializing OAuth or sessions
