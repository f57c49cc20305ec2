"""Shared building blocks used by every domain module.

This package provides:
- The error taxonomy raised by managers and translated by the API layer
- Page validation and pagination metadata
"""

from .errors import (
    AppError,
    ValidationError,
    NotFound,
    Conflict,
    AuthorizationError,
    InternalError
)
from .pagination import Page, validate_pagination, paginate, build_page

__all__ = [
    'AppError', 'ValidationError', 'NotFound', 'Conflict',
    'AuthorizationError', 'InternalError',
    'Page', 'validate_pagination', 'paginate', 'build_page'
]
