"""
Error kinds raised by the session flows and the blueprints.
api.errors turns every one of them into the response envelope.
"""
from __future__ import annotations


class ApiError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, errors=None, status_code: int | None = None):
        self.message = message or self.default_message
        self.errors = errors
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInput(ApiError):
    status_code = 400
    default_message = "Invalid input"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid user credentials"


class InvalidToken(Unauthorized):
    default_message = "Invalid refresh token"


class TokenExpired(Unauthorized):
    default_message = "Refresh token is expired or used"


class InternalFailure(ApiError):
    status_code = 500
    default_message = "Something went wrong"
