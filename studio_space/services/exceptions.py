"""Domain errors raised by the service layer.

Each error carries the HTTP status the API layer answers with, so managers
stay free of FastAPI imports.
"""


class StudioSpaceError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInputError(StudioSpaceError):
    status_code = 400
    error_type = "invalid_input"


class AuthenticationError(StudioSpaceError):
    status_code = 401
    error_type = "authentication_failed"


class AccessDeniedError(StudioSpaceError, PermissionError):
    status_code = 403
    error_type = "permission_denied"


class NotFoundError(StudioSpaceError, LookupError):
    status_code = 404
    error_type = "not_found"


class ConflictError(StudioSpaceError):
    status_code = 409
    error_type = "conflict"


class GoneError(StudioSpaceError):
    status_code = 410
    error_type = "gone"


class PayloadTooLargeError(StudioSpaceError):
    status_code = 413
    error_type = "payload_too_large"
