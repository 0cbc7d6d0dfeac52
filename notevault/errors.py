"""
Domain errors raised by services and rendered by the handlers in main.py.
"""

from fastapi import status


class NoteVaultError(Exception):
    """Base class for errors that map to a structured 4xx response."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailedError(NoteVaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class AuthenticationError(NoteVaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class ForbiddenError(NoteVaultError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(NoteVaultError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(NoteVaultError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class GoneError(NoteVaultError):
    status_code = status.HTTP_410_GONE
    default_message = "Resource is no longer available"
