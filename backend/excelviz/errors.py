"""Error taxonomy shared by the routers, the access gate and the services.

Every error carries an HTTP status, a stable machine-readable ``code`` and a
human readable ``message``. ``main.py`` turns them into
``{"success": false, "error": code, "message": message}`` responses.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"


class FileTooLargeError(ValidationError):
    status_code = 413
    code = "file_too_large"


class AuthenticationError(AppError):
    status_code = 401
    code = "authentication_failed"


class AuthorizationError(AppError):
    status_code = 403
    code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class ParseError(AppError):
    status_code = 400
    code = "parse_error"


class StorageError(AppError):
    status_code = 500
    code = "storage_error"
