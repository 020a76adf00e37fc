"""
Application error taxonomy.

Crud functions raise these before touching the database; the handler
registered in ``blogify.main`` turns them into the response envelope.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data


class BadRequestError(AppError):
    """Business-rule violation (validation, edit window, guarded deletes)"""
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Duplicate like/save, tag name, username or email"""
    status_code = 409
