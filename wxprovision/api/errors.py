"""Error handlers for the application.

The backend only serves the JSON API consumed by the frontend, so every
error is rendered as ``{"error", "message"}``.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return jsonify({"error": "Bad Request", "message": _description(error, "Invalid request")}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized errors."""
        return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401

    @app.errorhandler(403)
    def forbidden(error):
        """Handle 403 Forbidden errors."""
        return jsonify({"error": "Forbidden", "message": "Insufficient permissions"}), 403

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return jsonify({"error": "Not Found", "message": "Resource not found"}), 404

    @app.errorhandler(413)
    def too_large(error):
        """Handle uploads above MAX_CONTENT_LENGTH."""
        return jsonify({"error": "Payload Too Large", "message": "Uploaded file is too large"}), 413

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        # ALWAYS log the full error (even in production) - logs are secure
        app.logger.error(f"Internal error: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500


def _description(error, default: str) -> str:
    description = getattr(error, "description", None)
    return str(description) if description else default
