from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError


class ApiError(Exception):
    """
    Generic business error.
    """
    def __init__(self, message, status_code=400, errors=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}
        self.payload = payload or {}


class NotFoundError(ApiError):
    """Referenced block or renter does not exist."""

    def __init__(self, message="Not found", payload=None):
        super().__init__(message, 404, payload={"code": "NOT_FOUND", **(payload or {})})


class LedgerValidationError(ApiError):
    """Rejected before any store access (bad type, negative amount, bad period)."""

    def __init__(self, message, errors=None, code="VALIDATION"):
        super().__init__(message, 400, errors=errors, payload={"code": code})


class ConflictError(ApiError):
    """The unique (renter, period, type) key kept colliding after one retry."""

    def __init__(self, message="Concurrent update on the same payment record"):
        super().__init__(message, 409, payload={"code": "CONFLICT"})


class UnavailableError(ApiError):
    """The backing store could not be reached. Safe to retry."""

    def __init__(self, message="Payment store unavailable, try again later"):
        super().__init__(message, 503, payload={"code": "UNAVAILABLE", "retryable": True})


def register_error_handlers(app):

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        response = {
            "success": False,
            "message": err.message,
        }
        if err.errors:
            response["errors"] = err.errors
        if getattr(err, "payload", None):
            response["payload"] = err.payload

        return jsonify(response), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err: ValidationError):
        response = {
            "success": False,
            "message": "Invalid data",
            "errors": err.messages if hasattr(err, "messages") else str(err),
            "payload": {"code": "VALIDATION"},
        }
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        response = {
            "success": False,
            "message": err.description or "HTTP error",
        }
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        app.logger.exception(err)

        response = {
            "success": False,
            "message": "Internal server error",
        }
        return jsonify(response), 500
