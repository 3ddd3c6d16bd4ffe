"""
HTTP errors raised by services at the point of violation.

Each one is a FastAPI ``HTTPException`` so the app-level handler in
``clearcare.main`` renders it in the ``ErrorResponse`` envelope.
"""

from typing import Dict, Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base class carrying a fixed status code and a default message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Request failed"
    default_headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=self.default_headers,
        )


class CredentialsException(AppException):
    """Missing, invalid or expired bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"
    default_headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenException(AppException):
    """Role or ownership check failed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFoundException(AppException):
    """Entity is absent or soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class BadRequestException(AppException):
    """Duplicate creation or a write that does not fit the entity's type."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class ConflictException(AppException):
    """Unique value (e.g. email) already taken."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"
