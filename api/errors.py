from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from utils.errors import (
    AuthenticationFailed,
    InternalInvariantViolation,
    InvalidCredentialFormat,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Missing / malformed Authorization header
    @app.errorhandler(InvalidCredentialFormat)
    def handle_credential_format(err: InvalidCredentialFormat):
        logger.info("Rejected %s %s: %s", request.method, request.path, err.__class__.__name__)
        return error_response("UNAUTHORIZED", err.message, 401)

    # Bad password, bad/expired token, unknown/revoked session.
    # Only the generic message goes out; the reason stays in the logs.
    @app.errorhandler(AuthenticationFailed)
    def handle_authentication_failed(err: AuthenticationFailed):
        logger.info("Authentication failed on %s %s: %s", request.method, request.path, err.reason)
        return error_response("UNAUTHORIZED", err.message, 401)

    @app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(err: StoreUnavailable):
        logger.error("Store unavailable on %s %s", request.method, request.path, exc_info=err)
        return error_response("SERVICE_UNAVAILABLE", "Service temporarily unavailable", 503)

    @app.errorhandler(InternalInvariantViolation)
    def handle_invariant_violation(err: InternalInvariantViolation):
        logger.error("Invariant violation on %s %s", request.method, request.path, exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    # 400 Bad Request (generic)
    @app.errorhandler(400)
    def bad_request(e):
        message = getattr(e, "description", "Bad request")
        return error_response("BAD_REQUEST", message, 400)

    # 403 Forbidden
    @app.errorhandler(403)
    def forbidden(e):
        message = getattr(e, "description", "Forbidden")
        return error_response("FORBIDDEN", message, 403)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        message = getattr(e, "description", "Resource not found")
        return error_response("NOT_FOUND", message, 404)

    # 409 Conflict
    @app.errorhandler(409)
    def conflict(e):
        message = getattr(e, "description", "Conflict")
        return error_response("CONFLICT", message, 409)

    # 422 Unprocessable Entity (validation)
    @app.errorhandler(422)
    def unprocessable(e):
        message = getattr(e, "description", "Unprocessable entity")
        return error_response("VALIDATION_ERROR", message, 422)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors (unique constraints, FK violations)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key constraint" in lower_msg or "foreign key mismatch" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response("BAD_REQUEST", err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
