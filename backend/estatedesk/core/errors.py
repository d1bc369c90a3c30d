"""Domain errors raised by the service layer.

The API maps these to HTTP responses with one exception handler; services
never raise HTTPException themselves.
"""

from fastapi import status


class DomainError(Exception):
    """Base class for service-layer errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Resource does not exist or is outside the caller's organization."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(DomainError):
    """Target status is not a member of the enumeration or not allowed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(DomainError):
    """Write collided with existing state (duplicate, concurrent transition)."""

    status_code = status.HTTP_409_CONFLICT
