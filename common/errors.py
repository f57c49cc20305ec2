"""Error taxonomy shared by all managers.

Every error carries a short message and the HTTP status the API layer
answers with. Internal errors also keep the underlying cause so it can be
logged without being sent to the caller.
"""
from typing import Optional


class AppError(Exception):
    """Base class for errors raised by manager operations."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class ValidationError(AppError):
    """Malformed, missing or out-of-range input."""
    status_code = 400
    error_code = "validation_error"


class AuthorizationError(AppError):
    """Caller does not own the referenced resource."""
    status_code = 403
    error_code = "authorization_error"


class NotFound(AppError):
    """Referenced entity does not exist."""
    status_code = 404
    error_code = "not_found"

    def __init__(self, entity: str, message: Optional[str] = None):
        self.entity = entity
        super().__init__(message or f"{entity} not found")


class Conflict(AppError):
    """Uniqueness violation."""
    status_code = 409
    error_code = "conflict"


class InternalError(AppError):
    """Storage, network or SDK failure inside a collaborator."""
    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str = "Internal server error", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
