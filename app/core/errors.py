"""
Domain error taxonomy.

Services raise these; app.main maps each kind to an HTTP status in one place
so route handlers never build error responses by hand.
"""

from fastapi import status


class UrbanFixError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(UrbanFixError):
    """The referenced object does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidOperationError(UrbanFixError):
    """The object exists but is the wrong kind for the requested operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_operation"


class InvalidInputError(UrbanFixError):
    """Malformed request payload."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class ConflictError(UrbanFixError):
    """Request conflicts with current state (duplicate handle, already following)."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "conflict"


class AuthenticationError(UrbanFixError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class PermissionDeniedError(UrbanFixError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class UpstreamFailure(UrbanFixError):
    """
    A read or write against the backing store failed.

    Carries the original exception as __cause__. Never retried here; retry
    policy belongs to the store client.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "upstream_failure"
