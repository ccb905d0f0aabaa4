# core/errors.py
"""
HTTP error taxonomy shared by every router.

Each class is an HTTPException so FastAPI short-circuits the request; the
handlers in main.py render all of them as {"success": false, "message": ...}.
"""
from typing import Any

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Base class; `error` carries optional extra detail for the client."""
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Something went wrong!"

    def __init__(
        self,
        detail: str | None = None,
        *,
        error: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.message_default,
            headers=headers,
        )
        self.error = error


class ValidationError(ApiError):
    """Missing or malformed input."""
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Invalid request"


class AuthenticationError(ApiError):
    """Raised when authentication fails."""
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Could not validate credentials"

    def __init__(self, detail: str | None = None, *, error: Any = None):
        super().__init__(detail, error=error, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(ApiError):
    """Raised when user lacks required permissions."""
    status_code_default = status.HTTP_403_FORBIDDEN
    message_default = "Not enough permissions"


class NotFoundError(ApiError):
    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Not found"


class ConflictError(ApiError):
    # Existing clients expect 400 for a duplicate registration
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Resource already exists"
