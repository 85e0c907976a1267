# backend/utils/errors.py
from typing import Optional


class AppError(Exception):
    """Base class for errors rendered as ``{"success": false, "message", "error"?}``."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class InvalidArgument(AppError):
    status_code = 400


class Unauthenticated(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


# Duplicate registration is reported as a plain bad request
class Conflict(AppError):
    status_code = 400


class UpstreamUnavailable(AppError):
    status_code = 502


class Internal(AppError):
    status_code = 500


def error_body(message: str, error: Optional[str] = None) -> dict:
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return body
