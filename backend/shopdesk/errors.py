# Overview: Domain exception taxonomy shared by services and routes.

"""
API error taxonomy.

Every domain failure raised by the service layer is one of these classes.
Routes translate them with ``responses.error_response`` so the HTTP status
travels with the exception instead of being re-decided in each handler.

    ValidationError      400  missing/malformed input
    AuthenticationError  401  missing, invalid or expired credential
    AuthorizationError   403  valid identity, wrong shop or insufficient role
    NotFoundError        404  resource absent (after the full lookup chase)
    ConflictError        409  duplicate email, stale version token, etc.
    RateLimitError       429  too many failed logins or registrations
    InternalError        500  unexpected repository/runtime failure
"""


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ApiError, ValueError):
    """400-level input problem."""

    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError, ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""

    status_code = 409
    default_message = "Conflict"


class RateLimitError(ApiError):
    """429 with the number of seconds until the caller may retry."""

    status_code = 429
    default_message = "Too many attempts, please try again later"

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(ApiError):
    status_code = 500
