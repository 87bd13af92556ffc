from flask import jsonify, current_app, request
from flask_limiter import RateLimitExceeded
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from blog_api.limiter import GENERAL_LIMIT_MESSAGE

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base for errors that map directly onto an error envelope."""

    status = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class BadRequest(ApiError):
    status = 400
    code = "VALIDATION_ERROR"
    message = "Validation error"


class Unauthenticated(ApiError):
    status = 401
    code = "UNAUTHENTICATED"
    message = "Access denied. No token provided."


class TokenExpired(Unauthenticated):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class InvalidToken(Unauthenticated):
    code = "INVALID_TOKEN"
    message = "Invalid token"


class AccountDeactivated(Unauthenticated):
    code = "ACCOUNT_DEACTIVATED"
    message = "Account is deactivated."


class RefreshFailed(Unauthenticated):
    code = "REFRESH_FAILED"
    message = "Invalid or expired refresh token"


class Forbidden(ApiError):
    status = 403
    code = "FORBIDDEN"
    message = "Access denied."


class NotFound(ApiError):
    status = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class Conflict(ApiError):
    status = 409
    code = "CONFLICT"
    message = "Resource already exists"


class InternalError(ApiError):
    pass


def error_response(message: str, status: int, code: str | None = None, errors=None, details: dict | None = None,
                   retry_after: int | None = None):
    payload = {"success": False, "message": message}
    if code:
        payload["code"] = code
    if errors:
        payload["errors"] = errors
    if details:
        payload["details"] = details
    if retry_after is not None:
        payload["retryAfter"] = retry_after
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status >= 500:
            logger.exception("Server error", exc_info=err)
        return error_response(err.message, err.status, code=err.code, details=err.details)

    # Marshmallow validation errors carry field-level messages
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("Validation error", 400, code="VALIDATION_ERROR", errors=err.messages)

    # Unique constraints are the only integrity failures callers can cause
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        if "unique" in message:
            return error_response("Resource already exists", 409, code="CONFLICT")
        logger.exception("Integrity error", exc_info=err)
        return error_response("Integrity error", 400, code="BAD_REQUEST")

    # Flask-Limiter raises RateLimitExceeded (a 429 HTTPException)
    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(err: RateLimitExceeded):
        limit = err.limit
        message = limit.error_message or GENERAL_LIMIT_MESSAGE
        logger.warning("rate limit hit: %s %s (%s)", request.method, request.path, limit.limit)
        return error_response(message, 429, code="RATE_LIMITED", retry_after=limit.limit.get_expiry())

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        if status == 404:
            return error_response("API endpoint not found", 404, code="NOT_FOUND")
        return error_response(err.description or err.name, status, code=err.name.upper().replace(" ", "_"))

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        # In dev, include exception details to speed up debugging
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("An unexpected error occurred", 500, code="INTERNAL_ERROR", details=details)
