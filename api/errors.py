from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from utils.errors import ApiError

logger = logging.getLogger(__name__)


def api_response(status: int, data=None, message: str = "Success"):
    """Success envelope shared by every endpoint."""
    payload = {
        "statusCode": status,
        "data": data,
        "message": message,
        "success": status < 400,
    }
    return jsonify(payload), status


def error_response(status: int, message: str, errors=None):
    payload = {
        "statusCode": status,
        "data": None,
        "message": message,
        "success": False,
    }
    if errors:
        payload["errors"] = errors
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("API error %s: %s", err.status_code, err.message, exc_info=err.__cause__)
        return error_response(err.status_code, err.message, err.errors)

    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response(400, "Invalid input", err.messages)

    # Unique constraints lost to a concurrent insert
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        if current_app and current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique" in message:
            return error_response(409, "User or Email already exists")
        return error_response(400, "Integrity error")

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.code or 400, err.description)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response(500, "An unexpected error occurred", details)
